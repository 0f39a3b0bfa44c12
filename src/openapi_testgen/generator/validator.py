"""Validates rendered files for syntax errors before they are written."""

import ast
import json

from openapi_testgen.generator.model import GeneratedFile


def validate_python(files: list[GeneratedFile]) -> dict[str, str]:
    """Check Python files for syntax errors.

    Returns dict of {filename: error_message} for files with errors.
    """
    errors = {}
    for f in files:
        if not f.filename.endswith(".py"):
            continue
        if not f.content.strip():
            continue
        try:
            ast.parse(f.content, filename=f.filename)
        except SyntaxError as e:
            errors[f.filename] = f"SyntaxError: {e.msg} (line {e.lineno})"
    return errors


def validate_json(files: list[GeneratedFile]) -> dict[str, str]:
    """Check JSON files (Postman collections) for format errors."""
    errors = {}
    for f in files:
        if not f.filename.endswith(".json"):
            continue
        try:
            json.loads(f.content)
        except json.JSONDecodeError as e:
            errors[f.filename] = f"JSONDecodeError: {e.msg} (line {e.lineno})"
    return errors


def validate_files(files: list[GeneratedFile]) -> dict[str, str]:
    """Run all validations on generated files.

    Returns dict of {filename: error_message} for all files with errors.
    Binary files (spreadsheets) are not checked.
    """
    text_files = [f for f in files if isinstance(f.content, str)]
    errors = {}
    errors.update(validate_python(text_files))
    errors.update(validate_json(text_files))
    return errors
