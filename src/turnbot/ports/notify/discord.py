"""
Discord webhook notifier.

Posts JSON to an execute-webhook URL with `wait=true` so Discord answers
200 with the created message. Retries a bounded number of times:

- 200: delivered
- 204: accepted without confirmation (still counted as delivered)
- 429: wait for Retry-After / X-RateLimit-Reset-After, else 3 seconds
- anything else, or a transport error: wait `attempt` seconds
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Mapping, Optional
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import requests

from ...contracts.v1 import DiscordWebhook, MessageKind
from ...kernel.turns import ActiveTurn, RenameNeeded, TurnAdvance
from ...util.mask import mask_id
from .base import Notifier
from .messages import reminder_message, rename_message, turn_message

logger = logging.getLogger("turnbot.discord")

DEFAULT_TIMEOUT_SECONDS = 10.0
DEFAULT_MAX_ATTEMPTS = 3
FALLBACK_RATE_LIMIT_WAIT_SECONDS = 3.0
MAX_BODY_LOG_CHARS = 300


def prepare_webhook_url(webhook_url: str) -> str:
    """Return the webhook URL with `wait=true` set; raise ValueError if unusable."""
    url = str(webhook_url or "").strip()
    if not url:
        raise ValueError("webhook URL not set")
    parts = urlsplit(url)
    if parts.scheme not in ("http", "https") or not parts.netloc:
        raise ValueError(f"invalid webhook URL scheme/host: {parts.scheme!r}")
    query = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if k != "wait"]
    query.append(("wait", "true"))
    return urlunsplit((parts.scheme, parts.netloc, parts.path, urlencode(query), parts.fragment))


def parse_retry_after(headers: Mapping[str, str]) -> float:
    """Seconds to wait after a 429, from Discord's rate limit headers."""
    v = headers.get("Retry-After")
    if v:
        try:
            return float(int(str(v).strip()))
        except ValueError:
            # HTTP-date form is not worth supporting here.
            pass
    v = headers.get("X-RateLimit-Reset-After")
    if v:
        try:
            return max(0.0, float(str(v).strip()))
        except ValueError:
            pass
    return FALLBACK_RATE_LIMIT_WAIT_SECONDS


class DiscordWebhookNotifier(Notifier):
    platform = "discord"

    def __init__(
        self,
        webhook_url: str,
        game_name: str,
        *,
        session: Optional[requests.Session] = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.webhook_url = webhook_url
        self.game_name = game_name
        self.timeout = timeout
        self.max_attempts = max(1, int(max_attempts))
        self._session = session or requests.Session()
        self._sleep = sleep

    def send_turn(self, advance: TurnAdvance) -> bool:
        payload = turn_message(
            game_name=self.game_name,
            discord_id=advance.acting.discord_id,
            next_username=advance.next_player.username,
            turn_number=advance.save_instruction_turn,
        )
        return self.deliver(payload, username=advance.acting.username, discord_id=advance.acting.discord_id, kind="turn")

    def send_rename(self, rename: RenameNeeded) -> bool:
        target = rename.target
        if target is None:
            return False
        payload = rename_message(
            game_name=self.game_name,
            discord_id=target.discord_id,
            filename=rename.filename,
            turn_number=rename.turn_number,
        )
        return self.deliver(payload, username=target.username, discord_id=target.discord_id, kind="rename")

    def send_reminder(self, active: ActiveTurn, *, minutes_elapsed: int) -> bool:
        payload = reminder_message(
            game_name=self.game_name,
            discord_id=active.player.discord_id,
            next_username=active.next_player.username,
            turn_number=active.turn_number,
            minutes_elapsed=minutes_elapsed,
        )
        return self.deliver(payload, username=active.player.username, discord_id=active.player.discord_id, kind="reminder")

    def deliver(self, payload: DiscordWebhook, *, username: str, discord_id: str, kind: MessageKind) -> bool:
        """POST `payload` with bounded retries. Returns True once Discord accepts it."""
        ctx: dict[str, Any] = {"player": username, "recipient": mask_id(discord_id), "outcome": kind}
        try:
            url = prepare_webhook_url(self.webhook_url)
        except ValueError as e:
            logger.error(f"Cannot send {kind} notification: {e}", extra=ctx)
            return False

        body = payload.model_dump(mode="json", by_alias=True, exclude_none=True)

        for attempt in range(1, self.max_attempts + 1):
            last = attempt >= self.max_attempts
            try:
                resp = self._session.post(url, json=body, timeout=self.timeout)
            except requests.RequestException as e:
                logger.warning(
                    f"Attempt {attempt}: failed to send Discord {kind} notification: {e}",
                    extra={**ctx, "attempt": attempt},
                )
                if not last:
                    self._sleep(float(attempt))
                continue

            status = int(resp.status_code)
            if status == 200:
                logger.info(
                    f"{kind.capitalize()} notification sent to {username} ({mask_id(discord_id)}) successfully",
                    extra={**ctx, "attempt": attempt, "status": status},
                )
                return True
            if status == 204:
                logger.info(
                    f"Discord returned status 204 for {kind} notification to {username} ({mask_id(discord_id)}); "
                    "accepted but verify it appeared in Discord",
                    extra={**ctx, "attempt": attempt, "status": status},
                )
                return True

            text = (resp.text or "")[:MAX_BODY_LOG_CHARS]
            if status == 429:
                wait = parse_retry_after(resp.headers)
                logger.warning(
                    f"Attempt {attempt}: Discord rate limit hit (429). Waiting {wait:.1f}s before retry. Response: {text}",
                    extra={**ctx, "attempt": attempt, "status": status},
                )
                if not last:
                    self._sleep(wait)
                continue

            logger.warning(
                f"Attempt {attempt}: Discord returned unexpected status {status}. Response: {text}",
                extra={**ctx, "attempt": attempt, "status": status},
            )
            if not last:
                self._sleep(float(attempt))

        logger.error(
            f"Failed to send Discord {kind} notification after {self.max_attempts} attempts",
            extra=ctx,
        )
        return False
