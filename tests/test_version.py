"""
Tests for version module.

Covers __version__ attribute and check_version_consistency().
"""

import re
from unittest.mock import mock_open, patch

import tomllib

import agentctl
from agentctl.version import check_version_consistency


class TestVersionAttribute:
    """Test __version__ is properly set."""

    def test_version_format(self):
        """__version__ matches semver pattern (X.Y.Z)."""
        assert re.match(r"^\d+\.\d+\.\d+$", agentctl.__version__)


class TestCheckVersionConsistency:
    """Test check_version_consistency() function."""

    def test_consistency_success(self, tmp_path):
        pyproject = tmp_path / "pyproject.toml"
        pyproject.write_text(
            f'[project]\nversion = "{agentctl.__version__}"\n'
        )
        is_consistent, message = check_version_consistency(pyproject)
        assert is_consistent is True
        assert agentctl.__version__ in message

    def test_consistency_mismatch(self, tmp_path):
        pyproject = tmp_path / "pyproject.toml"
        pyproject.write_text('[project]\nversion = "99.99.99"\n')
        is_consistent, message = check_version_consistency(pyproject)
        assert is_consistent is False
        assert "mismatch" in message.lower()
        assert "99.99.99" in message

    def test_consistency_file_not_found(self, tmp_path):
        is_consistent, message = check_version_consistency(
            tmp_path / "pyproject.toml"
        )
        assert is_consistent is False
        assert "cannot find" in message.lower()

    def test_invalid_toml(self, tmp_path):
        pyproject = tmp_path / "pyproject.toml"
        pyproject.write_text("[project\n")
        is_consistent, message = check_version_consistency(pyproject)
        assert is_consistent is False
        assert "failed" in message.lower()

    def test_default_path_read_error(self):
        """The default location is used when no path is given."""
        with patch("agentctl.version.Path") as mock_path_cls:
            mock_path = (
                mock_path_cls.return_value.parent.parent.parent.__truediv__.return_value
            )
            mock_path.exists.return_value = True
            with patch("builtins.open", side_effect=PermissionError("Access denied")):
                is_consistent, message = check_version_consistency()

        assert is_consistent is False
        assert "access denied" in message.lower()

    def test_default_path_match(self):
        toml_data = {"project": {"version": agentctl.__version__}}
        with patch("agentctl.version.Path") as mock_path_cls:
            mock_path = (
                mock_path_cls.return_value.parent.parent.parent.__truediv__.return_value
            )
            mock_path.exists.return_value = True
            with patch("builtins.open", mock_open(read_data=b"")):
                with patch.object(tomllib, "load", return_value=toml_data):
                    is_consistent, _ = check_version_consistency()
        assert is_consistent is True
