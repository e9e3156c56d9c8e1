"""
Options controlling the side effects of one authentication pipeline.
"""

from typing import Any, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class AuthenticateOptions(BaseModel):
    """
    Configuration bag for ``Authenticator.authenticate``.

    Keys the pipeline does not know about are kept and can be read by
    strategies through ``model_extra`` (for example an OAuth ``scope``).
    """

    model_config = ConfigDict(extra="allow", frozen=True)

    session: bool = Field(default=True, description="Persist login state in the session")
    success_redirect: Optional[str] = Field(None, description="Redirect here after success")
    success_return_to_or_redirect: Optional[str] = Field(
        None, description="Redirect to the stored return_to URL, or here if none"
    )
    failure_redirect: Optional[str] = Field(None, description="Redirect here when all strategies fail")
    success_flash: Union[bool, str, None] = Field(
        None, description="Flash a success message; True derives it from the strategy info"
    )
    success_message: Union[bool, str, None] = Field(
        None, description="Append a success message to the session messages"
    )
    failure_flash: Union[bool, str, None] = Field(
        None, description="Flash a failure message; True uses the first challenge"
    )
    failure_message: Union[bool, str, None] = Field(
        None, description="Append a failure message to the session messages"
    )
    assign_property: Optional[str] = Field(
        None, description="Store the user in this request slot instead of logging in"
    )
    fail_with_error: bool = Field(default=False, description="Raise AuthenticationError on failure")
    auth_info: bool = Field(default=True, description="Run the auth-info transform chain")
    keep_session_info: bool = Field(
        default=False, description="Carry prior session fields across the login regeneration"
    )

    @classmethod
    def coerce(
        cls,
        options: Union["AuthenticateOptions", Mapping[str, Any], None] = None,
        **overrides: Any,
    ) -> "AuthenticateOptions":
        """Build options from a model, a mapping, keyword arguments or nothing."""
        if isinstance(options, cls):
            if not overrides:
                return options
            return options.model_copy(update=overrides)
        data = dict(options or {})
        data.update(overrides)
        return cls.model_validate(data)
