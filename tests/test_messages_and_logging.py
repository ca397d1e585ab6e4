import io
import json
import logging
import unittest


class TestMessages(unittest.TestCase):
    def test_turn_message_shape(self) -> None:
        from turnbot.ports.notify.messages import BOT_USERNAME, FOOTER_TEXT, turn_message

        msg = turn_message(
            game_name="pbem1", discord_id="1234", next_username="Carol", turn_number=7, timestamp="2024-01-01T00:00:00Z"
        )
        body = msg.model_dump(mode="json", by_alias=True, exclude_none=True)
        self.assertEqual(body["username"], BOT_USERNAME)
        self.assertIn("<@1234>", body["content"])
        embed = body["embeds"][0]
        self.assertEqual(embed["footer"]["text"], FOOTER_TEXT)
        self.assertEqual(embed["timestamp"], "2024-01-01T00:00:00Z")
        self.assertIn("```\npbem1_turn7_Carol\n```", embed["fields"][0]["value"])
        self.assertNotIn("title", embed)

    def test_rename_message_uses_placeholder(self) -> None:
        from turnbot.ports.notify.messages import COLOR_RENAME, NEXT_PLAYER_PLACEHOLDER, rename_message

        body = rename_message(
            game_name="pbem1", discord_id="99", filename="mygame_turn3_bob.se1", turn_number=3
        ).model_dump(mode="json", by_alias=True, exclude_none=True)
        embed = body["embeds"][0]
        self.assertEqual(embed["color"], COLOR_RENAME)
        self.assertIn("`mygame_turn3_bob.se1`", embed["fields"][0]["value"])
        self.assertIn(f"pbem1_turn3_{NEXT_PLAYER_PLACEHOLDER}", embed["fields"][0]["value"])

    def test_format_duration(self) -> None:
        from turnbot.util.time import format_duration_minutes

        self.assertEqual(format_duration_minutes(0), "0 minutes")
        self.assertEqual(format_duration_minutes(45), "45 minutes")
        self.assertEqual(format_duration_minutes(120), "2 hours")
        self.assertEqual(format_duration_minutes(725), "12 hours and 5 minutes")

    def test_mask_id(self) -> None:
        from turnbot.util.mask import mask_id

        self.assertEqual(mask_id("123456789012345678"), "****5678")
        self.assertEqual(mask_id("12"), "****")
        self.assertEqual(mask_id(""), "****")


class TestJsonlLogging(unittest.TestCase):
    def test_formatter_emits_context_keys(self) -> None:
        from turnbot.util.obslog import JsonlFormatter

        stream = io.StringIO()
        handler = logging.StreamHandler(stream)
        handler.setFormatter(JsonlFormatter(component="turnbot"))
        log = logging.getLogger("turnbot.test.obslog")
        log.propagate = False
        log.addHandler(handler)
        log.setLevel(logging.INFO)
        try:
            log.info("sent", extra={"player": "Bob", "recipient": "****2222", "attempt": 2, "file": ""})
        finally:
            log.removeHandler(handler)

        doc = json.loads(stream.getvalue().strip())
        self.assertEqual(doc["level"], "INFO")
        self.assertEqual(doc["logger"], "turnbot.test.obslog")
        self.assertEqual(doc["component"], "turnbot")
        self.assertEqual(doc["msg"], "sent")
        self.assertEqual(doc["player"], "Bob")
        self.assertEqual(doc["attempt"], "2")
        self.assertNotIn("file", doc)
        self.assertTrue(doc["ts"].endswith("Z"))

    def test_parse_level(self) -> None:
        from turnbot.util.obslog import parse_level

        self.assertEqual(parse_level("debug"), logging.DEBUG)
        self.assertEqual(parse_level(""), logging.INFO)
        self.assertEqual(parse_level("nonsense", logging.WARNING), logging.WARNING)


if __name__ == "__main__":
    unittest.main()
