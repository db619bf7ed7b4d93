"""Tests for name validation."""

import pytest

from sqlrev.errors import InvalidNameError
from sqlrev.utils.name_validator import (
    is_valid_branch_name,
    validate_branch_name,
    validate_connection_id,
)


class TestBranchNames:
    """Test branch name validation."""

    @pytest.mark.parametrize(
        "name", ["main", "feature/orders", "release-1.2", "fix_42", "A1"]
    )
    def test_valid(self, name):
        validate_branch_name(name)
        assert is_valid_branch_name(name)

    @pytest.mark.parametrize(
        "name",
        ["", "-start", ".hidden", "a..b", "a//b", "trailing/", "x.lock", "has space", "a" * 129],
    )
    def test_invalid(self, name):
        with pytest.raises(InvalidNameError):
            validate_branch_name(name)
        assert not is_valid_branch_name(name)


class TestConnectionIds:
    """Test connection id validation."""

    @pytest.mark.parametrize("connection_id", ["default", "orders-db", "tenant_42"])
    def test_valid(self, connection_id):
        validate_connection_id(connection_id)

    @pytest.mark.parametrize(
        "connection_id", ["", "..", "../x", "a/b", "a\\b", "dots.db", "-x"]
    )
    def test_invalid(self, connection_id):
        with pytest.raises(InvalidNameError):
            validate_connection_id(connection_id)

    def test_traversal_message(self):
        with pytest.raises(InvalidNameError, match="path traversal"):
            validate_connection_id("../secrets")
