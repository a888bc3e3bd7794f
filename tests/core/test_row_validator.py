"""批量导入单行校验测试"""

import pytest
from fieldops.core.row_validator import (
    RowRejection,
    ValidatedRow,
    fill_from_map_url,
    validate_row,
)


def _reason(record) -> str:
    outcome = validate_row(record)
    assert isinstance(outcome, RowRejection)
    return outcome.reason


class TestValidateRow:
    def test_minimal_valid_row(self):
        outcome = validate_row({"CaseID": "CASE-1", "Pincode": "560001"})
        assert isinstance(outcome, ValidatedRow)
        assert outcome.payload.title == "CASE-1"
        assert outcome.payload.postal_code == "560001"
        assert outcome.payload.latitude is None

    def test_header_aliases(self):
        outcome = validate_row(
            {
                "title": "  CASE-2  ",
                "pincode": "110001",
                "Client Name": "Acme",
                "lat": "28.61",
                "Lng": "77.20",
                "notes": "call before visit",
            }
        )
        assert isinstance(outcome, ValidatedRow)
        payload = outcome.payload
        assert payload.title == "CASE-2"
        assert payload.client_name == "Acme"
        assert (payload.latitude, payload.longitude) == (28.61, 77.20)
        assert payload.notes == "call before visit"

    def test_numeric_postal_code_cell(self):
        """表格读出的 float 邮编按整数处理"""
        outcome = validate_row({"CaseID": 1001, "Pincode": 560001.0})
        assert isinstance(outcome, ValidatedRow)
        assert outcome.payload.postal_code == "560001"
        assert outcome.payload.title == "1001"

    def test_missing_title(self):
        assert _reason({"CaseID": "  ", "Pincode": "560001"}) == "CaseID/Title is required"

    def test_missing_postal_code(self):
        assert _reason({"CaseID": "CASE-1"}) == "Pincode is required"

    @pytest.mark.parametrize("postal_code", ["12345", "5600011", "56000A", "560 01"])
    def test_malformed_postal_code(self, postal_code):
        assert _reason({"CaseID": "CASE-1", "Pincode": postal_code}) == (
            f"Pincode must be exactly 6 digits (got: {postal_code})"
        )

    @pytest.mark.parametrize("postal_code", ["٥٦٠٠٠١", "５６０００１"])
    def test_non_ascii_digits_rejected(self, postal_code):
        """只接受 ASCII 数字，其他文字的数字同样按格式错误处理"""
        assert _reason({"CaseID": "CASE-1", "Pincode": postal_code}) == (
            f"Pincode must be exactly 6 digits (got: {postal_code})"
        )

    def test_title_checked_before_postal_code(self):
        """先失败的校验生效"""
        assert _reason({"Pincode": "123"}) == "CaseID/Title is required"

    def test_title_too_long(self):
        reason = _reason({"CaseID": "x" * 501, "Pincode": "560001"})
        assert reason == "CaseID/Title must be at most 500 characters"

    def test_client_name_too_long(self):
        reason = _reason({"CaseID": "C", "Pincode": "560001", "ClientName": "y" * 201})
        assert reason == "ClientName must be at most 200 characters"

    def test_latitude_not_a_number(self):
        reason = _reason({"CaseID": "C", "Pincode": "560001", "Latitude": "north"})
        assert reason == "Latitude must be a number (got: north)"

    def test_longitude_out_of_range(self):
        reason = _reason({"CaseID": "C", "Pincode": "560001", "Longitude": "190"})
        assert reason == "Longitude must be between -180 and 180 (got: 190)"

    def test_coordinates_filled_from_map_url(self):
        outcome = validate_row(
            {
                "CaseID": "C",
                "Pincode": "560001",
                "MapURL": "https://maps.google.com/@12.9716,77.5946,15z",
            }
        )
        assert isinstance(outcome, ValidatedRow)
        assert outcome.payload.latitude == 12.9716
        assert outcome.payload.longitude == 77.5946
        assert outcome.payload.map_url == "https://maps.google.com/@12.9716,77.5946,15z"

    def test_explicit_coordinates_win_over_map_url(self):
        outcome = validate_row(
            {
                "CaseID": "C",
                "Pincode": "560001",
                "Latitude": 10.0,
                "MapURL": "https://maps.google.com/?q=12.9,77.5",
            }
        )
        assert isinstance(outcome, ValidatedRow)
        assert outcome.payload.latitude == 10.0
        assert outcome.payload.longitude == 77.5

    def test_unparseable_map_url_is_kept(self):
        outcome = validate_row(
            {"CaseID": "C", "Pincode": "560001", "MapURL": "https://maps.app.goo.gl/xyz"}
        )
        assert isinstance(outcome, ValidatedRow)
        assert outcome.payload.map_url == "https://maps.app.goo.gl/xyz"
        assert outcome.payload.latitude is None


class TestFillFromMapUrl:
    def test_out_of_range_extraction_ignored(self):
        assert fill_from_map_url("https://maps.example/@95.0,77.0", None, None) == (None, None)

    def test_partial_fill(self):
        assert fill_from_map_url("https://maps.example/?q=1.5,2.5", None, 9.0) == (1.5, 9.0)
