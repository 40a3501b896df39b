import os

EXAMPLE_FOLDER = os.path.join(os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))),
                              "benchmarkfiles")


def get_example_path(*args):
    return os.path.join(EXAMPLE_FOLDER, *args)
