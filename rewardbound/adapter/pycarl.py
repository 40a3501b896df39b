import pycarl
import pycarl.gmp

from rewardbound import config

if not config.configuration.has_pycarl():
    raise ImportError("Pycarl is not configured to be available. Maybe your config is outdated?")

# Set standard number type of pycarl (gmp or cln)
pycarl.numtype = pycarl.gmp

Rational = pycarl.numtype.Rational
