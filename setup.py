from setuptools import setup
import sys
import re

if sys.version_info[0] == 2:
    sys.exit("Sorry, Python 2 is not supported.")


def obtain_version():
    """
    Obtains the version as specified in rewardbound.
    :return: Version of rewardbound.
    """
    verstr = "unknown"
    try:
        verstrline = open('rewardbound/_version.py', "rt").read()
    except EnvironmentError:
        pass  # Okay, there is no version file.
    else:
        VSRE = r"^__version__ = ['\"]([^'\"]*)['\"]"
        mo = re.search(VSRE, verstrline, re.M)
        if mo:
            verstr = mo.group(1)
        else:
            raise RuntimeError("unable to find version in rewardbound/_version.py")
    return verstr


setup(
    name="Rewardbound",
    version=obtain_version(),
    description="Rewardbound - Epoch-wise analysis of reward-bounded properties of Markov models",
    packages=["rewardbound", "rewardbound.adapter", "rewardbound.data", "rewardbound.exceptions",
              "rewardbound.input", "rewardbound.rewardbounded", "rewardbound.solver", "rewardbound.storage",
              "rewardbound.utility"],
    install_requires=['numpy', 'scipy', 'click'],
    tests_require=['pytest'],
    extras_require={
        'exact': ["pycarl>=2.0.2"],
        'test': ["pytest"],
    },
    package_data={
        'rewardbound': ['rewardbound.cfg'],
    },
    scripts=[
        'scripts/solve_epochs.py'],
)
