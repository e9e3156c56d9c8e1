"""
Authentication pipeline.

Applies one or more strategies, in order, to a request. The first strategy
to succeed, redirect, pass or error halts the chain. Failures proceed through
each strategy in series and only decide the response if every strategy
fails. This is typically used on API endpoints to let clients authenticate
with their preferred scheme (Basic, bearer token, ...). Chaining several
strategies that redirect makes little sense: the first redirect wins.
"""

import inspect
import logging
from typing import TYPE_CHECKING, Any, Callable, List, Mapping, Optional, Sequence, Tuple, Union

from ..auth.errors import (
    AuthenticationError,
    ConfigurationError,
    ProtocolViolationError,
    UnknownStrategyError,
    reason_phrase,
)
from ..auth.interfaces import StrategyLike, is_strategy
from ..session.manager import FlashKind
from .actions import ActionKind, Failure, StrategyContext
from .options import AuthenticateOptions
from .outcomes import CONTINUE, Redirect, Respond

if TYPE_CHECKING:
    from ..auth.authenticator import Authenticator

logger = logging.getLogger(__name__)

StrategySpecifier = Union[StrategyLike, str, Sequence[Union[StrategyLike, str]]]

# callback(error, user=None, info=None, status=None), sync or async
AuthenticateCallback = Callable[..., Any]


async def _call(callback: AuthenticateCallback, *args: Any) -> Any:
    result = callback(*args)
    if inspect.isawaitable(result):
        result = await result
    return result


def _flash_kind(value: Any, default: FlashKind) -> FlashKind:
    try:
        return FlashKind(value)
    except ValueError:
        return default


def _success_text(option: Union[bool, str], info: Any) -> Tuple[Optional[str], FlashKind]:
    """Message and kind for success_flash / success_message."""
    if isinstance(option, str):
        return option, FlashKind.SUCCESS
    if isinstance(info, str):
        return info, FlashKind.SUCCESS
    if isinstance(info, Mapping):
        message = info.get("message")
        kind = _flash_kind(info.get("type"), FlashKind.SUCCESS)
        if isinstance(message, str):
            return message, kind
    return None, FlashKind.SUCCESS


def _failure_text(option: Union[bool, str], failure: Failure) -> Optional[str]:
    if isinstance(option, str):
        return option
    return failure.challenge


class AuthenticateHandler:
    """
    Per-request authentication handler returned by ``Authenticator.authenticate``.

    Awaiting ``handler(request)`` runs the strategy chain for one request and
    returns an outcome (``Continue``, ``Redirect`` or ``Respond``), or
    whatever the application callback returned.
    """

    def __init__(
        self,
        authenticator: "Authenticator",
        specifier: StrategySpecifier,
        options: AuthenticateOptions,
        callback: Optional[AuthenticateCallback] = None,
    ):
        self.authenticator = authenticator
        self.options = options
        self.callback = callback

        # A single strategy reports its failure as scalars to the callback,
        # a list reports lists
        if isinstance(specifier, (list, tuple)):
            self.multi = True
            self.specifiers = list(specifier)
        else:
            self.multi = False
            self.specifiers = [specifier]

        if not self.specifiers:
            raise ConfigurationError("authenticate() requires at least one strategy")

    def _resolve(self, layer: Union[StrategyLike, str]) -> Tuple[StrategyLike, str]:
        if is_strategy(layer):
            return layer, getattr(layer, "name", "") or type(layer).__name__
        if not isinstance(layer, str):
            raise ConfigurationError(f"Invalid strategy specifier: {layer!r}")
        strategy = self.authenticator.strategy(layer)
        if strategy is None:
            raise UnknownStrategyError(layer)
        return strategy, layer

    async def __call__(self, request: Any) -> Any:
        failures: List[Failure] = []

        for index, layer in enumerate(self.specifiers):
            strategy, name = self._resolve(layer)
            ctx = StrategyContext(request, name, index)

            try:
                result = strategy.authenticate(ctx, self.options)
                if inspect.isawaitable(result):
                    await result
            except ProtocolViolationError:
                raise
            except Exception as exc:
                # Raising is reported the same way as signaling error()
                ctx.close()
                logger.debug("Strategy %s raised %s", name, type(exc).__name__)
                return await self._error(exc)
            ctx.close()

            signal = ctx.signal
            if signal is None:
                raise ProtocolViolationError(name, "finished without signaling an outcome")

            if signal.kind is ActionKind.FAIL:
                logger.debug(
                    "Strategy %s failed (status=%s, challenge=%s)",
                    name,
                    signal.failure.status,
                    signal.failure.challenge is not None,
                )
                failures.append(signal.failure)
                continue

            if signal.kind is ActionKind.SUCCESS:
                logger.info(
                    "Strategy %s authenticated the request after %d failed attempts",
                    name,
                    len(failures),
                )
                return await self._success(request, signal.user, signal.info)

            if signal.kind is ActionKind.REDIRECT:
                logger.debug("Strategy %s redirected (%s)", name, signal.status)
                return Redirect(signal.url, signal.status)

            if signal.kind is ActionKind.PASS:
                logger.debug("Strategy %s passed", name)
                return CONTINUE

            return await self._error(signal.error)

        return await self._all_failed(request, failures)

    async def _success(self, request: Any, user: Any, info: Any) -> Any:
        if self.callback is not None:
            return await _call(self.callback, None, user, info)

        options = self.options
        manager = self.authenticator.session_manager
        if info is None:
            info = {}

        if options.assign_property:
            # Authorize a third-party account without replacing the session user
            request.set(options.assign_property, user)
            await self._success_messages(request, info)
            if options.auth_info:
                request.auth_info = await self.authenticator.transform_auth_info(info, request)
            return CONTINUE

        await request.log_in(
            user,
            session=options.session,
            keep_session_info=options.keep_session_info,
        )
        # Written after login so the session regeneration does not drop them
        await self._success_messages(request, info)
        if options.auth_info:
            request.auth_info = await self.authenticator.transform_auth_info(info, request)

        if options.success_return_to_or_redirect:
            url = options.success_return_to_or_redirect
            return_to = await manager.pluck_return_to(request)
            if return_to:
                url = return_to
            return Redirect(url)
        if options.success_redirect:
            return Redirect(options.success_redirect)
        return CONTINUE

    async def _success_messages(self, request: Any, info: Any) -> None:
        options = self.options
        manager = self.authenticator.session_manager
        if options.success_flash:
            message, kind = _success_text(options.success_flash, info)
            if message is not None:
                await manager.set_flash(request, kind, message)
        if options.success_message:
            message, _ = _success_text(options.success_message, info)
            if message is not None:
                await manager.set_message(request, message)

    async def _all_failed(self, request: Any, failures: List[Failure]) -> Any:
        if self.callback is not None:
            if not self.multi:
                return await _call(self.callback, None, False, failures[0].challenge, failures[0].status)
            challenges = [failure.challenge for failure in failures]
            statuses = [failure.status for failure in failures]
            return await _call(self.callback, None, False, challenges, statuses)

        options = self.options
        manager = self.authenticator.session_manager

        # Strategies are ordered by priority; the first failure is the one
        # shown to the user
        failure = failures[0] if failures else Failure()

        if options.failure_flash:
            message = _failure_text(options.failure_flash, failure)
            if message is not None:
                await manager.set_flash(request, FlashKind.ERROR, message)
        if options.failure_message:
            message = _failure_text(options.failure_message, failure)
            if message is not None:
                await manager.set_message(request, message)
        if options.failure_redirect:
            return Redirect(options.failure_redirect)

        status: Optional[int] = None
        challenges: List[str] = []
        for item in failures:
            status = status or item.status
            if isinstance(item.challenge, str):
                challenges.append(item.challenge)
        status = status or 401

        if options.fail_with_error:
            raise AuthenticationError(status=status)

        headers = {}
        if status == 401 and challenges:
            headers["WWW-Authenticate"] = ", ".join(challenges)
        return Respond(status=status, headers=headers, body=reason_phrase(status))

    async def _error(self, err: BaseException) -> Any:
        if self.callback is not None:
            return await _call(self.callback, err)
        raise err
