"""Model bases shared by the package and build descriptions."""

from typing import Annotated, List

from pydantic import BaseModel, ConfigDict, StringConstraints

NonEmptyString = Annotated[str, StringConstraints(min_length=1)]
"""A string of at least one character, e.g. a crate name or a command token."""

CommandTokens = List[NonEmptyString]
"""A command line split into tokens, as written in a manifest array."""


class BaseModelWithDocstrings(BaseModel):
    """Base model with the attribute docstrings being extracted to the model JSON schema."""

    model_config = ConfigDict(use_attribute_docstrings=True)


class FrozenModelWithDocstrings(BaseModel):
    """Immutable, hashable variant of :class:`BaseModelWithDocstrings`."""

    model_config = ConfigDict(use_attribute_docstrings=True, frozen=True)


class StrictModelWithDocstrings(BaseModel):
    """Rejects unknown keys. Used for tables users write by hand, where a typo should fail."""

    model_config = ConfigDict(use_attribute_docstrings=True, extra="forbid")


class ExternalModel(BaseModel):
    """Lenient model for documents produced by other tools. Unknown keys are dropped."""

    model_config = ConfigDict(use_attribute_docstrings=True, extra="ignore")
