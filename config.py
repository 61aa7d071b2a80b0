"""Engine-wide configuration.

Defaults can be overridden with environment variables prefixed with CAS_.
Formatting defaults only seed FormatConfig.from_env(); callers that need a
different format pass their own FormatConfig to the engine.
"""
import os

# Result formatting
PRECISION = int(os.getenv("CAS_PRECISION", "10"))  # digits after the decimal point
NUMBER_FORMAT = os.getenv("CAS_NUMBER_FORMAT", "automatic")  # "plain", "automatic", "scientific"

# automatic mode switches to scientific outside [SCIENTIFIC_LOWER, SCIENTIFIC_UPPER)
SCIENTIFIC_LOWER = 1e-6
SCIENTIFIC_UPPER = 1e6
# fraction parts and coefficients are shown in full below this
EXACT_DIGITS_LIMIT = 10 ** 15

# Structural limits
MAX_EXPRESSION_DEPTH = int(os.getenv("CAS_MAX_EXPRESSION_DEPTH", "200"))
MAX_ENUMERATION_TERMS = int(os.getenv("CAS_MAX_ENUMERATION_TERMS", "100000"))  # summation/product range
MAX_INTEGER_POWER = int(os.getenv("CAS_MAX_INTEGER_POWER", "100"))  # largest exponent evaluated exactly

# Numeric fallback for definite integrals without a closed form
QUADRATURE_INTERVALS = int(os.getenv("CAS_QUADRATURE_INTERVALS", "1000"))  # must be even

LOG_LEVEL = os.getenv("CAS_LOG_LEVEL", "WARNING")

# Default differentiation/integration variable when the slot is empty
DEFAULT_VARIABLE = "x"
