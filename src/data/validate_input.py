"""Input validation for diabetes risk predictions."""

import json
import math
import numbers
from typing import Any, Dict, Mapping, Optional, Tuple

import pandas as pd
import pandera as pa
from pandera import Column, DataFrameSchema

from src.config.constants import FEATURE_RANGES, INTEGER_COLUMNS, REQUIRED_COLUMNS
from src.data.schemas import PredictionInput
from src.errors import InvalidType, MissingField, OutOfRange, ValidationError


class DiabetesInputValidator:
    """Validates a single prediction record before it is scored."""

    REQUIRED_COLUMNS = REQUIRED_COLUMNS

    def __init__(self):
        """Initialize validator with schema."""
        self.schema = DataFrameSchema(
            {
                "Pregnancies": Column(int, checks=[pa.Check.in_range(0, 20)], nullable=False),
                "Glucose": Column(float, checks=[pa.Check.in_range(0, 300)], nullable=False),
                "BloodPressure": Column(float, checks=[pa.Check.in_range(0, 200)], nullable=False),
                "BMI": Column(float, checks=[pa.Check.in_range(10, 70)], nullable=False),
                "Age": Column(int, checks=[pa.Check.in_range(1, 120)], nullable=False),
            },
            strict=True,
        )

    def _coerce_number(self, field: str, value: Any):
        if isinstance(value, bool):
            raise InvalidType(field, value)

        if isinstance(value, str):
            try:
                number = float(value.strip())
            except ValueError:
                raise InvalidType(field, value) from None
        elif isinstance(value, numbers.Real):
            number = float(value)
        else:
            raise InvalidType(field, value)

        if not math.isfinite(number):
            raise InvalidType(field, value)

        if field in INTEGER_COLUMNS:
            if not number.is_integer():
                raise InvalidType(field, value, expected="whole number")
            return int(number)
        return number

    def validate(self, candidate: Mapping[str, Any]) -> PredictionInput:
        """Validate a candidate record.

        Checks, in order:
        - All required fields are present (None counts as absent)
        - Every field is numeric, and whole for Pregnancies and Age
        - Every field lies within its closed range

        Args:
            candidate: Mapping of feature name to raw value

        Returns:
            Validated PredictionInput

        Raises:
            MissingField: First absent field in canonical order
            InvalidType: First non-numeric field in canonical order
            OutOfRange: First field outside its range in canonical order
        """
        if isinstance(candidate, PredictionInput):
            candidate = candidate.model_dump()

        for col in self.REQUIRED_COLUMNS:
            if candidate.get(col) is None:
                raise MissingField(col)

        record = {col: self._coerce_number(col, candidate[col]) for col in self.REQUIRED_COLUMNS}

        try:
            self.schema.validate(pd.DataFrame([record]), lazy=True)
        except pa.errors.SchemaErrors as e:
            failed = set(e.failure_cases["column"])
            for col in self.REQUIRED_COLUMNS:
                if col in failed:
                    low, high = FEATURE_RANGES[col]
                    raise OutOfRange(col, record[col], low, high) from None
            raise

        return PredictionInput(**record)

    def check(
        self, candidate: Mapping[str, Any]
    ) -> Tuple[Optional[PredictionInput], Optional[ValidationError]]:
        """Validate without raising.

        Returns:
            Tuple of (input, error); exactly one of them is None
        """
        try:
            return self.validate(candidate), None
        except ValidationError as e:
            return None, e


_validator = DiabetesInputValidator()


def validate(candidate: Mapping[str, Any]) -> PredictionInput:
    """Validate a candidate record with the shared validator."""
    return _validator.validate(candidate)


def validation_report(candidate: Mapping[str, Any]) -> Dict:
    valid_input, error = _validator.check(candidate)
    if error is not None:
        return {
            "status": "rejected",
            "error": type(error).__name__,
            "field": error.field,
            "message": str(error),
        }
    return {"status": "valid", "input": valid_input.model_dump()}


def main():
    """CLI entry point for input validation."""
    import argparse

    parser = argparse.ArgumentParser(description="Validate a diabetes prediction record")
    parser.add_argument("record", help="JSON object with the five health metrics")
    args = parser.parse_args()

    report = validation_report(json.loads(args.record))
    print(f"Validation Report: {json.dumps(report, indent=2)}")

    return 0 if report["status"] == "valid" else 1


if __name__ == "__main__":
    exit(main())
