###
# Helpers to skip tests depending on optional modules.
####

import pytest

from rewardbound import config


def require_pycarl():
    return pytest.mark.skipif(not config.configuration.has_pycarl(), reason="requires pycarl")


def require_scipy():
    return pytest.mark.skipif(not config.configuration.has_scipy(), reason="requires scipy")
