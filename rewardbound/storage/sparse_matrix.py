import logging

import numpy as np

from rewardbound.utility.numbers import zero, one, convert_number

logger = logging.getLogger(__name__)


class SparseMatrix:
    """
    A row-oriented sparse matrix in compressed row format.

    Rows can be partitioned into consecutive row groups. For non-deterministic models, a row group collects the
    choices of one state. Without a custom row grouping, every row forms its own group.
    Values can be of any number type; the type is recorded to create neutral elements.
    """

    def __init__(self, column_count, row_indications, columns, values, row_group_indices=None, value_type=float):
        """
        :param column_count: Number of columns.
        :param row_indications: Start index (in columns/values) of every row, followed by the number of entries.
        :param columns: Column of every entry, ascending within a row.
        :param values: Value of every entry.
        :param row_group_indices: First row of every group, followed by the number of rows. None for trivial grouping.
        :param value_type: Number type of the values.
        """
        assert len(row_indications) >= 1
        assert len(columns) == len(values) == row_indications[-1]
        self._column_count = column_count
        self._row_indications = list(row_indications)
        self._columns = list(columns)
        self._values = list(values)
        self._value_type = value_type
        if row_group_indices is not None:
            row_group_indices = list(row_group_indices)
            if row_group_indices[0] != 0 or row_group_indices[-1] != self.get_row_count():
                raise ValueError("Row groups do not cover all {} rows".format(self.get_row_count()))
            if any(row_group_indices[i] > row_group_indices[i + 1] for i in range(len(row_group_indices) - 1)):
                raise ValueError("Row group indices must be non-decreasing")
        self._row_group_indices = row_group_indices

    @property
    def value_type(self):
        return self._value_type

    def get_row_count(self):
        return len(self._row_indications) - 1

    def get_column_count(self):
        return self._column_count

    def get_entry_count(self):
        return len(self._columns)

    def get_row_group_count(self):
        if self._row_group_indices is None:
            return self.get_row_count()
        return len(self._row_group_indices) - 1

    def get_row_group_indices(self):
        """
        :return: The first row of every group, followed by the number of rows.
        """
        if self._row_group_indices is None:
            return list(range(self.get_row_count() + 1))
        return self._row_group_indices

    def get_row_group_size(self, group):
        indices = self.get_row_group_indices()
        return indices[group + 1] - indices[group]

    def has_trivial_row_grouping(self):
        if self._row_group_indices is None:
            return True
        return all(self._row_group_indices[i + 1] - self._row_group_indices[i] == 1
                   for i in range(len(self._row_group_indices) - 1))

    def get_row(self, row):
        """
        :param row: Row index.
        :return: List of (column, value) pairs of the row.
        """
        start, end = self._row_indications[row], self._row_indications[row + 1]
        return list(zip(self._columns[start:end], self._values[start:end]))

    def rows(self):
        for row in range(self.get_row_count()):
            yield self.get_row(row)

    def is_identity_matrix(self):
        """
        Check whether the matrix is square, carries a one on every diagonal entry and zero everywhere else.
        """
        if self.get_row_count() != self._column_count:
            return False
        value_zero = zero(self._value_type)
        value_one = one(self._value_type)
        for row in range(self.get_row_count()):
            has_diagonal = False
            for column, value in self.get_row(row):
                if column == row:
                    if value != value_one:
                        return False
                    has_diagonal = True
                elif value != value_zero:
                    return False
            if not has_diagonal:
                return False
        return True

    def multiply_row_with_vector(self, row, x):
        result = zero(self._value_type)
        for i in range(self._row_indications[row], self._row_indications[row + 1]):
            result += self._values[i] * x[self._columns[i]]
        return result

    def multiply_with_vector(self, x):
        assert len(x) == self._column_count
        return [self.multiply_row_with_vector(row, x) for row in range(self.get_row_count())]

    def select_rows(self, rows):
        """
        Create the submatrix consisting of the given rows (in the given order) with trivial row grouping.
        :param rows: Row indices.
        :return: New matrix.
        """
        row_indications = [0]
        columns = []
        values = []
        for row in rows:
            for column, value in self.get_row(row):
                columns.append(column)
                values.append(value)
            row_indications.append(len(columns))
        return SparseMatrix(self._column_count, row_indications, columns, values, value_type=self._value_type)

    def convert_to_equation_system(self):
        """
        Compute I - M for this (square) matrix M.
        Applying the conversion twice yields the original matrix up to explicit zero diagonal entries.
        :return: New matrix with the same row grouping.
        """
        if self.get_row_count() != self._column_count:
            raise ValueError("Only square matrices can be converted into an equation system")
        value_one = one(self._value_type)
        row_indications = [0]
        columns = []
        values = []
        for row in range(self.get_row_count()):
            inserted_diagonal = False
            for column, value in self.get_row(row):
                if column == row:
                    columns.append(column)
                    values.append(value_one - value)
                    inserted_diagonal = True
                    continue
                if column > row and not inserted_diagonal:
                    columns.append(row)
                    values.append(value_one)
                    inserted_diagonal = True
                columns.append(column)
                values.append(-value)
            if not inserted_diagonal:
                columns.append(row)
                values.append(value_one)
            row_indications.append(len(columns))
        return SparseMatrix(self._column_count, row_indications, columns, values, self._row_group_indices,
                            self._value_type)

    def to_scipy(self):
        """
        :return: The matrix as scipy.sparse.csr_matrix over floats (row grouping is dropped).
        """
        # Do not import at top, as scipy is only needed for the corresponding solver.
        from scipy.sparse import csr_matrix
        data = np.array([float(v) for v in self._values], dtype=float)
        return csr_matrix((data, np.array(self._columns, dtype=np.int64), np.array(self._row_indications, dtype=np.int64)),
                          shape=(self.get_row_count(), self._column_count))

    def __eq__(self, other):
        if not isinstance(other, SparseMatrix):
            return False
        return self._column_count == other._column_count and \
            self._row_indications == other._row_indications and \
            self._columns == other._columns and \
            self._values == other._values and \
            self.get_row_group_indices() == other.get_row_group_indices()

    def __str__(self):
        lines = []
        indices = self.get_row_group_indices()
        for group in range(self.get_row_group_count()):
            for row in range(indices[group], indices[group + 1]):
                entries = ", ".join("{}:{}".format(c, v) for c, v in self.get_row(row))
                lines.append("{}\t{}\t[{}]".format(group, row, entries))
        return "\n".join(lines)

    def __repr__(self):
        return "SparseMatrix({}x{}, {} entries, {} row groups)".format(
            self.get_row_count(), self._column_count, self.get_entry_count(), self.get_row_group_count())


class SparseMatrixBuilder:
    """
    Incrementally builds a SparseMatrix. Entries have to be added row by row with ascending columns.
    """

    def __init__(self, has_custom_row_grouping=False, value_type=float):
        self._has_custom_row_grouping = has_custom_row_grouping
        self._value_type = value_type
        self._row_indications = [0]
        self._columns = []
        self._values = []
        self._row_group_indices = [] if has_custom_row_grouping else None
        self._last_row = 0
        self._last_column = None
        self._highest_column = -1

    def _advance_to_row(self, row):
        while len(self._row_indications) <= row:
            self._row_indications.append(len(self._columns))

    def add_next_value(self, row, column, value):
        """
        Add an entry.
        :param row: Row of the entry, not smaller than the row of the previous entry.
        :param column: Column of the entry, larger than the previous column if the row did not change.
        :param value: Value, converted into the value type of the builder.
        """
        if row < self._last_row:
            raise ValueError("Adding an entry in row {} after an entry in row {}".format(row, self._last_row))
        if row == self._last_row and self._last_column is not None and column <= self._last_column:
            raise ValueError("Columns in row {} must be strictly increasing".format(row))
        if row != self._last_row:
            self._last_column = None
        self._advance_to_row(row)
        self._columns.append(column)
        self._values.append(convert_number(value, self._value_type))
        self._last_row = row
        self._last_column = column
        self._highest_column = max(self._highest_column, column)

    def new_row_group(self, starting_row):
        """
        Start a new row group.
        :param starting_row: First row of the group.
        """
        if not self._has_custom_row_grouping:
            raise ValueError("Matrix was not declared to have a custom row grouping")
        if self._row_group_indices and starting_row < self._row_group_indices[-1]:
            raise ValueError("Row group starting at {} precedes the previous one".format(starting_row))
        self._row_group_indices.append(starting_row)

    def build(self, row_count=None, column_count=None, row_group_count=None):
        """
        :param row_count: Overall number of rows (to account for empty trailing rows).
        :param column_count: Overall number of columns.
        :param row_group_count: Overall number of row groups (to account for empty trailing groups).
        :return: The matrix.
        """
        if row_count is None:
            row_count = self._last_row + 1 if self._columns else len(self._row_indications) - 1
        if row_count < self._last_row + (1 if self._columns else 0):
            raise ValueError("Row count {} is too small".format(row_count))
        self._advance_to_row(row_count)
        row_indications = self._row_indications[:row_count] + [len(self._columns)]
        if column_count is None:
            column_count = self._highest_column + 1
        if column_count <= self._highest_column:
            raise ValueError("Column count {} is too small".format(column_count))

        row_group_indices = None
        if self._has_custom_row_grouping:
            row_group_indices = list(self._row_group_indices)
            if row_group_count is not None:
                while len(row_group_indices) < row_group_count:
                    row_group_indices.append(row_count)
            row_group_indices.append(row_count)
        return SparseMatrix(column_count, row_indications, self._columns, self._values, row_group_indices,
                            self._value_type)
