"""
Error taxonomy shared by the workflow, the model client and the API layer.

  - Validation: FieldUpdateError, UnknownScenarioError, InputRejected
  - Workflow misuse: InvalidTransition, WorkflowBusy
  - Remote calls: ModelCallError, CredentialError
"""


class DirectorError(Exception):
    """Base class for every error raised by this service."""


class FieldUpdateError(DirectorError, ValueError):
    """A field edit named an unknown field/attribute or carried the wrong type."""


class UnknownScenarioError(DirectorError, KeyError):
    """No scenario template is registered under the requested id."""

    def __str__(self) -> str:
        return self.args[0] if self.args else "Unknown scenario"


class InputRejected(DirectorError, ValueError):
    """A chat message failed the input guardrails (empty, too long)."""


class InvalidTransition(DirectorError):
    """The requested operation is not allowed in the current workflow stage."""


class WorkflowBusy(DirectorError):
    """An external call for this step is already in flight."""


class ModelCallError(DirectorError):
    """The remote model call was rejected, timed out or returned nothing usable."""


class CredentialError(ModelCallError, PermissionError):
    """The remote model reported the caller is not authorized.

    Once raised, the workflow refuses further calls until re-authenticated.
    """
