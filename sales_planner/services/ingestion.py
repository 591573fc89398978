"""
Activity log CSV import/export service.

Lets a user bulk-load historical daily activity (for example from a
spreadsheet kept before adopting the planner) and download their log.

Key Features:
- Required column validation (date plus the call and message counters)
- One row per date (duplicate dates are rejected)
- YYYY-MM-DD date validation
- Non-negative integer validation for every activity counter
- Wellbeing scores validated to the 1-10 entry range
- Optional columns filled with form defaults
- Any calls_total column is ignored: it is always recomputed from outcomes

Validation problems are returned as ValidationError models rather than
raised, so the API can report every problem in one response.
"""

import io
import logging
from typing import BinaryIO, List, Optional, Tuple

import pandas as pd

from sales_planner.models.schemas import (
    COUNT_FIELDS,
    WELLBEING_FIELDS,
    DailyActivityRecord,
    ValidationError,
)

# Configure module logger
logger = logging.getLogger(__name__)

# =============================================================================
# CONSTANTS - Columns
# =============================================================================

REQUIRED_COLUMNS: List[str] = [
    'date',
    'calls_refused',
    'calls_no_answer',
    'calls_answered',
    'messages_sent',
]

OPTIONAL_COUNT_COLUMNS: List[str] = [
    col for col in COUNT_FIELDS if col not in REQUIRED_COLUMNS
]

EXPORT_COLUMNS: List[str] = (
    ['date', 'calls_total'] + COUNT_FIELDS + WELLBEING_FIELDS + ['mood_note']
)

# Entry form default for a wellbeing score left blank
DEFAULT_WELLBEING: int = 7

WELLBEING_MIN: int = 1
WELLBEING_MAX: int = 10

# Number of offending rows quoted in an error message
MAX_QUOTED_ROWS: int = 5


def _row_numbers(mask: pd.Series) -> List[int]:
    # DataFrame index is 0-based; reported row numbers are 1-based data rows
    return [int(i) + 1 for i in mask[mask].index.tolist()[:MAX_QUOTED_ROWS]]


# =============================================================================
# VALIDATION FUNCTIONS
# =============================================================================

def validate_columns(df: pd.DataFrame) -> List[ValidationError]:
    """
    Validate that all required columns are present.

    Args:
        df: DataFrame with normalized (lowercase) column names

    Returns:
        List of ValidationError objects for any missing columns
    """
    errors: List[ValidationError] = []
    for col in REQUIRED_COLUMNS:
        if col not in df.columns:
            errors.append(ValidationError(
                field=col,
                message=f"Required column '{col}' is missing",
                row_number=None
            ))
    return errors


def validate_dates(df: pd.DataFrame) -> List[ValidationError]:
    """
    Validate the date column: strict YYYY-MM-DD and one row per date.

    Args:
        df: DataFrame with a string 'date' column

    Returns:
        List of ValidationError objects
    """
    errors: List[ValidationError] = []

    parsed = pd.to_datetime(df['date'], format='%Y-%m-%d', errors='coerce')
    invalid_mask = parsed.isna() | (df['date'].str.len() != 10)
    if invalid_mask.any():
        rows = _row_numbers(invalid_mask)
        errors.append(ValidationError(
            field='date',
            message=(
                f"Found {int(invalid_mask.sum())} invalid dates (expected YYYY-MM-DD). "
                f"First invalid rows: {rows}"
            ),
            row_number=rows[0]
        ))

    duplicated_mask = df['date'].duplicated(keep=False)
    if duplicated_mask.any():
        rows = _row_numbers(duplicated_mask)
        duplicates = sorted(df.loc[duplicated_mask, 'date'].unique().tolist())
        errors.append(ValidationError(
            field='date',
            message=f"Found duplicate dates {duplicates[:MAX_QUOTED_ROWS]}. First duplicate rows: {rows}",
            row_number=rows[0]
        ))

    return errors


def validate_counters(df: pd.DataFrame) -> List[ValidationError]:
    """
    Validate that every present activity counter is a non-negative integer.

    Args:
        df: Normalized DataFrame

    Returns:
        List of ValidationError objects, one per offending column
    """
    errors: List[ValidationError] = []

    for col in COUNT_FIELDS:
        if col not in df.columns:
            continue
        numeric = pd.to_numeric(df[col], errors='coerce')
        invalid_mask = numeric.isna() | (numeric < 0) | (numeric % 1 != 0)
        # Blank optional cells are filled later
        if col not in REQUIRED_COLUMNS:
            invalid_mask &= df[col].notna()
        if invalid_mask.any():
            rows = _row_numbers(invalid_mask)
            errors.append(ValidationError(
                field=col,
                message=(
                    f"Found {int(invalid_mask.sum())} values in '{col}' that are not "
                    f"non-negative integers. First invalid rows: {rows}"
                ),
                row_number=rows[0]
            ))

    return errors


def validate_wellbeing(df: pd.DataFrame) -> List[ValidationError]:
    """Validate that present wellbeing scores are integers in 1-10."""
    errors: List[ValidationError] = []

    for col in WELLBEING_FIELDS:
        if col not in df.columns:
            continue
        numeric = pd.to_numeric(df[col], errors='coerce')
        out_of_range = (
            numeric.isna()
            | (numeric < WELLBEING_MIN)
            | (numeric > WELLBEING_MAX)
            | (numeric % 1 != 0)
        )
        invalid_mask = out_of_range & df[col].notna()
        if invalid_mask.any():
            rows = _row_numbers(invalid_mask)
            errors.append(ValidationError(
                field=col,
                message=(
                    f"Found {int(invalid_mask.sum())} values in '{col}' outside "
                    f"{WELLBEING_MIN}-{WELLBEING_MAX}. First invalid rows: {rows}"
                ),
                row_number=rows[0]
            ))

    return errors


def _normalize_dataframe(df: pd.DataFrame) -> pd.DataFrame:
    """
    Normalize column names and string cells.

    Returns:
        Copy with lowercase column names, the calls_total column dropped and
        the date column as stripped strings.
    """
    df_normalized = df.copy()
    df_normalized.columns = df_normalized.columns.str.lower().str.strip()

    if 'calls_total' in df_normalized.columns:
        df_normalized = df_normalized.drop(columns=['calls_total'])

    if 'date' in df_normalized.columns:
        df_normalized['date'] = df_normalized['date'].astype(str).str.strip()

    return df_normalized


def _fill_defaults(df: pd.DataFrame) -> pd.DataFrame:
    df_filled = df.copy()

    for col in COUNT_FIELDS:
        if col not in df_filled.columns:
            df_filled[col] = 0
        df_filled[col] = pd.to_numeric(df_filled[col], errors='coerce').fillna(0).astype(int)

    for col in WELLBEING_FIELDS:
        if col not in df_filled.columns:
            df_filled[col] = DEFAULT_WELLBEING
        df_filled[col] = (
            pd.to_numeric(df_filled[col], errors='coerce').fillna(DEFAULT_WELLBEING).astype(int)
        )

    if 'mood_note' not in df_filled.columns:
        df_filled['mood_note'] = ''
    df_filled['mood_note'] = df_filled['mood_note'].fillna('').astype(str)

    return df_filled


# =============================================================================
# IMPORT / EXPORT
# =============================================================================

def ingest_csv(
    file: BinaryIO
) -> Tuple[Optional[List[DailyActivityRecord]], List[ValidationError]]:
    """
    Parse and validate an activity log CSV.

    Performs the following steps:
    1. Parse CSV using pandas
    2. Validate required columns
    3. Validate dates (format and uniqueness)
    4. Validate activity counters and wellbeing scores
    5. Fill optional columns and build DailyActivityRecord models

    Args:
        file: Binary or text file object containing CSV data

    Returns:
        Tuple of (validated records or None, list of validation errors)
    """
    errors: List[ValidationError] = []

    try:
        content = file.read()
        if isinstance(content, bytes):
            file_like = io.BytesIO(content)
        else:
            file_like = io.StringIO(content)

        df = pd.read_csv(file_like, dtype={'date': str})

        if df.empty:
            errors.append(ValidationError(
                field='file',
                message='CSV file is empty or contains no data rows',
                row_number=None
            ))
            return None, errors

        logger.info(f"Parsed CSV with {len(df)} rows and {len(df.columns)} columns")

    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as e:
        errors.append(ValidationError(
            field='file',
            message=f'Failed to parse CSV file: {str(e)}',
            row_number=None
        ))
        return None, errors

    df = _normalize_dataframe(df)

    column_errors = validate_columns(df)
    if column_errors:
        return None, column_errors

    errors.extend(validate_dates(df))
    errors.extend(validate_counters(df))
    errors.extend(validate_wellbeing(df))

    if errors:
        logger.warning(f"CSV import rejected with {len(errors)} validation errors")
        return None, errors

    df = _fill_defaults(df)
    numeric_columns = COUNT_FIELDS + WELLBEING_FIELDS
    records = [
        DailyActivityRecord(
            date=row['date'],
            mood_note=row['mood_note'],
            **{col: int(row[col]) for col in numeric_columns}
        )
        for row in df.to_dict(orient='records')
    ]

    return records, errors


def export_csv(records: List[DailyActivityRecord]) -> str:
    """
    Render activity rows as CSV, newest first.

    calls_total is written as a convenience column; it is ignored on import.

    Args:
        records: Rows to export

    Returns:
        CSV text with a header row
    """
    rows = [r.model_dump(include=set(EXPORT_COLUMNS)) for r in records]
    df = pd.DataFrame(rows, columns=EXPORT_COLUMNS)
    if not df.empty:
        df = df.sort_values('date', ascending=False)

    logger.info(f"Exported {len(df)} activity rows")
    return df.to_csv(index=False)
