"""Tests for finsight.validator -- extension and size checks on selected files."""

from __future__ import annotations

from pathlib import Path

import pytest

from finsight.errors import FileTooLargeError, InvalidFileTypeError, ValidationError
from finsight.validator import (
    MAX_UPLOAD_BYTES,
    file_extension,
    validate_path,
    validate_upload,
)


class TestFileExtension:
    def test_lowercases(self):
        assert file_extension("March.PDF") == "pdf"

    def test_uses_last_dot(self):
        assert file_extension("statement.2024.03.xlsx") == "xlsx"

    def test_no_dot(self):
        assert file_extension("README") == "readme"


class TestValidateUpload:
    @pytest.mark.parametrize("name", ["a.pdf", "a.csv", "a.xlsx", "a.xls", "A.XLS"])
    def test_accepts_allowed_types(self, name: str):
        candidate = validate_upload(name, 1024)
        assert candidate.name == name
        assert candidate.extension == name.rsplit(".", 1)[-1].lower()
        assert candidate.size_bytes == 1024

    @pytest.mark.parametrize("name", ["notes.txt", "archive.pdf.zip", "statement", "image.png"])
    def test_rejects_other_types(self, name: str):
        with pytest.raises(InvalidFileTypeError) as exc_info:
            validate_upload(name, 1024)
        assert exc_info.value.user_message == "Please upload a PDF, CSV, or Excel file."

    def test_exactly_max_size_accepted(self):
        candidate = validate_upload("big.pdf", MAX_UPLOAD_BYTES)
        assert candidate.size_bytes == 10_485_760

    def test_one_byte_over_rejected(self):
        with pytest.raises(FileTooLargeError) as exc_info:
            validate_upload("big.pdf", MAX_UPLOAD_BYTES + 1)
        assert exc_info.value.user_message == "File size must be less than 10MB."

    def test_type_checked_before_size(self):
        with pytest.raises(InvalidFileTypeError):
            validate_upload("huge.txt", MAX_UPLOAD_BYTES * 2)

    def test_errors_are_validation_errors(self):
        with pytest.raises(ValidationError):
            validate_upload("a.doc", 1)

    def test_custom_limits(self):
        candidate = validate_upload("a.ods", 10, allowed_extensions=[".ODS"], max_bytes=10)
        assert candidate.extension == "ods"
        with pytest.raises(FileTooLargeError):
            validate_upload("a.ods", 11, allowed_extensions=["ods"], max_bytes=10)

    def test_size_mib(self):
        candidate = validate_upload("a.pdf", 2_621_440)
        assert candidate.size_mib == 2.5


class TestValidatePath:
    def test_reads_size_from_disk(self, tmp_path: Path):
        path = tmp_path / "march.csv"
        path.write_bytes(b"x" * 300)
        candidate = validate_path(path)
        assert candidate.size_bytes == 300
        assert candidate.path == path
        assert candidate.name == "march.csv"

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            validate_path(tmp_path / "missing.pdf")
