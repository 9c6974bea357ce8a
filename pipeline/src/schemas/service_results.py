"""
Structured service result types for the pipeline services.

Synthesizers return results instead of raising so that the build service can
isolate per-clip and per-character failures and keep processing.
"""

from dataclasses import dataclass
from typing import Optional, Generic, TypeVar

from pipeline.src.core.exceptions import PipelineError

T = TypeVar('T')


@dataclass
class ServiceResult(Generic[T]):
    """
    Generic service result with structured error information.

    A failed result keeps the originating PipelineError so callers that prefer
    exceptions can call unwrap().
    """
    success: bool
    data: Optional[T] = None
    message: str = ""
    error_code: Optional[str] = None
    error: Optional[PipelineError] = None

    @classmethod
    def success_with_data(cls, data: T, message: str = "Operation successful") -> 'ServiceResult[T]':
        """Create successful result with data."""
        return cls(success=True, data=data, message=message)

    @classmethod
    def failure(cls, message: str, error_code: Optional[str] = None) -> 'ServiceResult[T]':
        """Create failure result with error information."""
        return cls(success=False, data=None, message=message, error_code=error_code)

    @classmethod
    def from_error(cls, error: PipelineError) -> 'ServiceResult[T]':
        """Create failure result from a pipeline error."""
        return cls(success=False, data=None, message=error.message, error_code=error.code, error=error)

    def unwrap(self) -> T:
        """Return the data, or raise the recorded error."""
        if self.success:
            return self.data
        if self.error is not None:
            raise self.error
        raise PipelineError(self.message or "Operation failed")


@dataclass
class ClipServiceResult(ServiceResult[T]):
    """Clip synthesis specific result extensions."""
    path: Optional[str] = None
    attempts: int = 0  # Writes performed (2 when the recreate path ran)

    @classmethod
    def success_with_clip(
        cls,
        clip: T,
        path: str,
        attempts: int,
        message: str = "Clip written"
    ) -> 'ClipServiceResult[T]':
        """Create successful result with the persisted clip."""
        return cls(success=True, data=clip, message=message, path=path, attempts=attempts)


@dataclass
class ControllerServiceResult(ServiceResult[T]):
    """Controller synthesis specific result extensions."""
    path: Optional[str] = None
    created: bool = False
    states_added: int = 0
    transitions_removed: int = 0
    transitions_added: int = 0

    @classmethod
    def success_with_controller(
        cls,
        controller: T,
        path: str,
        created: bool,
        states_added: int,
        transitions_removed: int,
        transitions_added: int,
    ) -> 'ControllerServiceResult[T]':
        """Create successful result with reconciliation counts."""
        return cls(
            success=True,
            data=controller,
            message="Controller created" if created else "Controller updated",
            path=path,
            created=created,
            states_added=states_added,
            transitions_removed=transitions_removed,
            transitions_added=transitions_added,
        )
