"""Tests for name validation."""

import pytest

from initdag.errors import RegistrationError
from initdag.validation import check_node_name, is_name_list


class TestCheckNodeName:
    """Test check_node_name."""

    def test_valid_name(self) -> None:
        """Test an unused name passes."""
        check_node_name("storage", ["cache"])

    @pytest.mark.parametrize("name", ["_start", "done", "error"])
    def test_reserved(self, name: str) -> None:
        """Test reserved names are rejected in both modes."""
        with pytest.raises(RegistrationError, match="reserved"):
            check_node_name(name, [], strict=False)

    @pytest.mark.parametrize("name", ["", None, 3])
    def test_not_a_name(self, name) -> None:
        """Test empty or non-string names are rejected."""
        with pytest.raises(RegistrationError, match="non-empty string"):
            check_node_name(name, [])

    def test_duplicate(self) -> None:
        """Test duplicates are rejected only in strict mode."""
        with pytest.raises(RegistrationError, match="already registered") as info:
            check_node_name("cache", ["cache"])

        assert info.value.node_name == "cache"
        check_node_name("cache", ["cache"], strict=False)


class TestIsNameList:
    """Test is_name_list."""

    def test_lists_and_tuples(self) -> None:
        assert is_name_list(["a", "b"])
        assert is_name_list(("a",))
        assert is_name_list([])

    @pytest.mark.parametrize("names", ["a", None, {"a"}, 1, [{"name": "a"}], ["a", None]])
    def test_rejected(self, names) -> None:
        assert not is_name_list(names)
