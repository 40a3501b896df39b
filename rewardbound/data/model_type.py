from enum import Enum


class ModelType(Enum):
    """
    The type of a Markovian model.
    """
    DTMC = 0
    MDP = 1

    def __str__(self):
        return self.name.lower()

    @classmethod
    def from_string(cls, input):
        try:
            return cls[input.strip().upper()]
        except KeyError:
            raise ValueError("Model type '{}' is not supported".format(input))


def model_is_nondeterministic(model_type):
    """
    Checks whether the model type is non-deterministic.
    :param model_type: 
    :return: True, if the model type encodes a model with potential non-determinism.
    """
    assert isinstance(model_type, ModelType)
    return model_type == ModelType.MDP
