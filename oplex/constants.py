# Numerics
# ----------------------------------------------------------------------------------------------------------------------
EPSILON = 1e-10

# Types
# ----------------------------------------------------------------------------------------------------------------------
INT_TYPE = "int"
FLOAT_TYPE = "float"
STRING_TYPE = "string"
BOOL_TYPE = "bool"

NUMERIC_TYPES = [INT_TYPE, FLOAT_TYPE]
PARAM_TYPES = [INT_TYPE, FLOAT_TYPE, STRING_TYPE]
FIELD_TYPES = [INT_TYPE, FLOAT_TYPE, STRING_TYPE, BOOL_TYPE]
VAR_TYPES = [FLOAT_TYPE, INT_TYPE, BOOL_TYPE]

# Non-negative variable type suffix (e.g. 'float+')
NON_NEGATIVE_SUFFIX = '+'

# Token Kinds
# ----------------------------------------------------------------------------------------------------------------------
ITEM_TOKEN = "ITEM"
TUPLE_TOKEN = "TUPLE"
TUPLE_ITER_TOKEN = "TUPLE_ITER"
PARAM_TOKEN = "PARAM"

TOKEN_KINDS = [ITEM_TOKEN, TUPLE_TOKEN, TUPLE_ITER_TOKEN, PARAM_TOKEN]

# Objective Senses
# ----------------------------------------------------------------------------------------------------------------------
MINIMIZE_SENSE = "minimize"
MAXIMIZE_SENSE = "maximize"

OBJ_SENSES = [MINIMIZE_SENSE, MAXIMIZE_SENSE]

# Keywords
# ----------------------------------------------------------------------------------------------------------------------
EXTERNAL_VALUE_SYMBOL = "..."

VAR_KEYWORDS = ["var", "dvar"]
DEXPR_KEYWORD = "dexpr"
RANGE_KEYWORD = "range"
TUPLE_KEYWORD = "tuple"
FORALL_KEYWORD = "forall"
SUM_KEYWORD = "sum"
ITEM_KEYWORD = "item"
ASSERT_KEYWORD = "assert"
KEY_KEYWORD = "key"
CONSTRAINT_BLOCK_KEYWORDS = ["subject to", "constraints"]

RESERVED_SYMBOLS = (VAR_KEYWORDS + [DEXPR_KEYWORD, RANGE_KEYWORD, TUPLE_KEYWORD, FORALL_KEYWORD, SUM_KEYWORD,
                                    ITEM_KEYWORD, ASSERT_KEYWORD, "in", "true", "false"]
                    + OBJ_SENSES + PARAM_TYPES + [BOOL_TYPE])

# Default Names
# ----------------------------------------------------------------------------------------------------------------------
DEFAULT_CONSTRAINT_BASE_NAME = "constraint"
DEFAULT_OBJECTIVE_NAME = "obj"

# File Extensions
# ----------------------------------------------------------------------------------------------------------------------
MODEL_FILE_EXTENSION = ".mod"
DATA_FILE_EXTENSION = ".dat"
