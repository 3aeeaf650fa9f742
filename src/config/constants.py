"""Shared constants for the diabetes logistic model comparison."""

# Covariate columns, in the order used for fitting and stepwise elimination
COVARIATE_COLUMNS = [
    "Pregnancies",
    "Glucose",
    "BloodPressure",
    "SkinThickness",
    "Insulin",
    "BMI",
    "DiabetesPedigreeFunction",
    "Age",
]

# Target column name
TARGET_COLUMN = "Outcome"

REQUIRED_COLUMNS = COVARIATE_COLUMNS + [TARGET_COLUMN]

# Columns where zero is a missing-value sentinel (biological impossibility).
# Rows with a zero in any of these are dropped.
SENTINEL_ZERO_COLUMNS = [
    "Glucose",
    "BloodPressure",
    "SkinThickness",
    "Insulin",
    "BMI",
    "DiabetesPedigreeFunction",
    "Age",
]

# Candidate models, in fitting and evaluation order
MODEL_NAMES = ["full", "aic_backward", "bic_backward", "lasso"]

DEFAULT_RANDOM_SEED = 42
DEFAULT_TRAIN_FRACTION = 0.7
DEFAULT_THRESHOLD = 0.5
