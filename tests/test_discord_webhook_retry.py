import unittest
from unittest.mock import MagicMock


def _resp(status: int, headers=None, text: str = ""):
    r = MagicMock()
    r.status_code = status
    r.headers = dict(headers or {})
    r.text = text
    return r


def _advance():
    from turnbot.contracts.v1 import UserMapping
    from turnbot.kernel.turns import TurnAdvance

    a = UserMapping(order=1, username="A", discord_id="id_a_123456")
    b = UserMapping(order=2, username="B", discord_id="id_b_123456")
    c = UserMapping(order=3, username="C", discord_id="id_c_123456")
    return TurnAdvance(filename="pbem1_turn1_B", acting=b, next_player=c, previous_player=a, save_instruction_turn=1)


class TestDiscordWebhookRetry(unittest.TestCase):
    def _notifier(self, *responses, url="https://discord.example/api/webhooks/1/tok"):
        from turnbot.ports.notify.discord import DiscordWebhookNotifier

        session = MagicMock()
        session.post.side_effect = list(responses)
        sleeps = []
        n = DiscordWebhookNotifier(url, "pbem1", session=session, sleep=sleeps.append)
        return n, session, sleeps

    def test_delivered_on_200_with_wait_param_and_payload(self) -> None:
        n, session, sleeps = self._notifier(_resp(200))
        self.assertTrue(n.send_turn(_advance()))
        self.assertEqual(session.post.call_count, 1)
        self.assertEqual(sleeps, [])

        args, kwargs = session.post.call_args
        self.assertIn("wait=true", args[0])
        self.assertEqual(kwargs["timeout"], 10.0)
        body = kwargs["json"]
        self.assertIn("<@id_b_123456>", body["content"])
        embed = body["embeds"][0]
        self.assertEqual(embed["color"], 0xFFA500)
        self.assertIn("pbem1_turn1_C", embed["fields"][0]["value"])
        self.assertIn("url", embed["thumbnail"])
        self.assertTrue(embed["timestamp"].endswith("Z"))

    def test_204_counts_as_delivered(self) -> None:
        n, session, _ = self._notifier(_resp(204))
        self.assertTrue(n.send_turn(_advance()))
        self.assertEqual(session.post.call_count, 1)

    def test_rate_limit_honors_retry_after(self) -> None:
        n, session, sleeps = self._notifier(_resp(429, {"Retry-After": "2"}), _resp(200))
        self.assertTrue(n.send_turn(_advance()))
        self.assertEqual(session.post.call_count, 2)
        self.assertEqual(sleeps, [2.0])

    def test_rate_limit_reset_after_and_fallback(self) -> None:
        n, _, sleeps = self._notifier(
            _resp(429, {"X-RateLimit-Reset-After": "0.5"}),
            _resp(429, {}),
            _resp(200),
        )
        self.assertTrue(n.send_turn(_advance()))
        self.assertEqual(sleeps, [0.5, 3.0])

    def test_gives_up_after_three_attempts_with_linear_backoff(self) -> None:
        n, session, sleeps = self._notifier(_resp(500, text="boom"), _resp(502), _resp(503))
        self.assertFalse(n.send_turn(_advance()))
        self.assertEqual(session.post.call_count, 3)
        self.assertEqual(sleeps, [1.0, 2.0])

    def test_transport_errors_are_retried_then_reported(self) -> None:
        import requests

        n, session, sleeps = self._notifier(
            requests.ConnectionError("down"),
            requests.Timeout("slow"),
            _resp(200),
        )
        self.assertTrue(n.send_turn(_advance()))
        self.assertEqual(sleeps, [1.0, 2.0])

        n, session, sleeps = self._notifier(*[requests.ConnectionError("down")] * 3)
        self.assertFalse(n.send_turn(_advance()))
        self.assertEqual(session.post.call_count, 3)

    def test_missing_url_never_touches_network(self) -> None:
        n, session, _ = self._notifier(url="")
        self.assertFalse(n.send_turn(_advance()))
        session.post.assert_not_called()

    def test_rename_without_target_is_not_sent(self) -> None:
        from turnbot.kernel.turns import RenameNeeded

        n, session, _ = self._notifier(_resp(200))
        self.assertFalse(n.send_rename(RenameNeeded(filename="x_turn1_zed", turn_number=1)))
        session.post.assert_not_called()

    def test_reminder_payload(self) -> None:
        from turnbot.kernel.turns import ActiveTurn

        adv = _advance()
        active = ActiveTurn(player=adv.acting, next_player=adv.next_player, turn_number=4, started_at_ms=0)
        n, session, _ = self._notifier(_resp(200))
        self.assertTrue(n.send_reminder(active, minutes_elapsed=125))
        body = session.post.call_args.kwargs["json"]
        self.assertIn("2 hours and 5 minutes elapsed", body["content"])
        self.assertEqual(body["embeds"][0]["color"], 0xFF9900)
        self.assertIn("pbem1_turn4_C", body["embeds"][0]["fields"][0]["value"])


class TestWebhookHelpers(unittest.TestCase):
    def test_prepare_webhook_url(self) -> None:
        from turnbot.ports.notify.discord import prepare_webhook_url

        url = prepare_webhook_url("https://discord.example/api/webhooks/1/tok?thread_id=5&wait=false")
        self.assertIn("thread_id=5", url)
        self.assertIn("wait=true", url)
        self.assertNotIn("wait=false", url)
        with self.assertRaises(ValueError):
            prepare_webhook_url("")
        with self.assertRaises(ValueError):
            prepare_webhook_url("not a url")

    def test_parse_retry_after(self) -> None:
        from turnbot.ports.notify.discord import parse_retry_after

        self.assertEqual(parse_retry_after({"Retry-After": "4"}), 4.0)
        self.assertEqual(parse_retry_after({"Retry-After": "soon", "X-RateLimit-Reset-After": "1.25"}), 1.25)
        self.assertEqual(parse_retry_after({}), 3.0)


if __name__ == "__main__":
    unittest.main()
