"""Tests for core error types."""

import pytest

from repograph.core.errors import (
    ConfigError,
    ErrorCode,
    PipelineStageError,
    RepoGraphError,
    RepositoryExistsError,
    RepositoryNotFoundError,
)


class TestRepoGraphError:
    """Base error behaviour."""

    def test_given_error_when_str_then_includes_code_and_name(self) -> None:
        """String form carries numeric code, name and message."""
        err = RepositoryNotFoundError.for_id("acme-web")
        assert str(err) == "[3001] REPOSITORY_NOT_FOUND: Repository not found: acme-web"

    def test_given_error_when_to_dict_then_serializable_payload(self) -> None:
        """to_dict exposes structured fields for JSON output."""
        # Given
        err = PipelineStageError.stage_failed("mirror", "disk full")

        # When
        payload = err.to_dict()

        # Then
        assert payload == {
            "code": 4001,
            "error": "PIPELINE_STAGE_FAILED",
            "message": "Stage 'mirror' failed: disk full",
            "retryable": True,
            "details": {"stage": "mirror", "detail": "disk full"},
        }

    def test_given_error_when_raised_then_catchable_as_base(self) -> None:
        """Subclasses are catchable as RepoGraphError and keep their message."""
        with pytest.raises(RepoGraphError) as exc_info:
            raise RepositoryExistsError.for_id("dup")
        assert exc_info.value.message == "Repository already exists: dup"
        assert exc_info.value.args == ("Repository already exists: dup",)

    @pytest.mark.parametrize(
        ("error", "code"),
        [
            (ConfigError.parse_error("/x.yaml", "bad"), ErrorCode.CONFIG_PARSE_ERROR),
            (ConfigError.invalid_value("a.b", 1, "bad"), ErrorCode.CONFIG_INVALID_VALUE),
            (RepositoryNotFoundError.for_id("x"), ErrorCode.REPOSITORY_NOT_FOUND),
            (RepositoryExistsError.for_id("x"), ErrorCode.REPOSITORY_EXISTS),
        ],
    )
    def test_given_factory_when_called_then_code_assigned(
        self, error: RepoGraphError, code: ErrorCode
    ) -> None:
        """Each factory sets its error code."""
        assert error.code == code
        assert error.error_name == code.name
