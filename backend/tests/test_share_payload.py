import json
import unittest
from app.services.share_payload import (
    collect_payload_candidates,
    extract_enqueue_payloads,
    extract_payload,
    find_conversation_scripts,
    parse_conversation_array,
    unescape_string_literal,
)

from share_fixtures import build_conversation_graph, build_share_html

class TestUnescape(unittest.TestCase):

    def test_decodes_quotes_and_backslashes_in_one_pass(self):
        # JS literal \"a\\\"b\" is the JSON text "a\"b"
        self.assertEqual(unescape_string_literal(r'\"a\\\"b\"'), r'"a\"b"')

    def test_leaves_other_escapes_alone(self):
        self.assertEqual(unescape_string_literal(r"line\nnext é"), r"line\nnext é")


class TestExtractEnqueuePayloads(unittest.TestCase):

    def test_escaped_quote_does_not_terminate(self):
        script = r'streamController.enqueue("say \"hi\"");'
        self.assertEqual(extract_enqueue_payloads(script), ['say "hi"'])

    def test_escaped_backslash_before_closing_quote(self):
        script = r'streamController.enqueue("a\\");'
        self.assertEqual(extract_enqueue_payloads(script), ["a\\"])

    def test_unterminated_literal_returns_scanned_text(self):
        self.assertEqual(extract_enqueue_payloads('streamController.enqueue("abc'), ["abc"])

    def test_collects_every_call_in_order(self):
        script = 'streamController.enqueue("one");x();streamController.enqueue("two");'
        self.assertEqual(extract_enqueue_payloads(script), ["one", "two"])

    def test_no_marker(self):
        self.assertEqual(extract_enqueue_payloads('console.log("mapping")'), [])


class TestExtractPayload(unittest.TestCase):

    def setUp(self):
        self.payload_json = json.dumps(
            ["title", 'He said "hi"', "mapping", {"a": 4}, "back\\slash"],
            ensure_ascii=False
        )

    def test_round_trips_escaped_json(self):
        html = build_share_html(self.payload_json)
        self.assertEqual(extract_payload(html), self.payload_json)
        self.assertEqual(json.loads(extract_payload(html))[1], 'He said "hi"')

    def test_is_idempotent(self):
        html = build_share_html(self.payload_json)
        self.assertEqual(extract_payload(html), extract_payload(html))

    def test_ignores_scripts_without_nonce(self):
        html = (
            '<script>window.serverResponse = 1; // mapping\n'
            'streamController.enqueue("[1]");</script>'
        )
        self.assertIsNone(extract_payload(html))

    def test_ignores_nonce_scripts_missing_keywords(self):
        html = '<script nonce="n">streamController.enqueue("[\\"mapping\\"]");</script>'
        self.assertEqual(find_conversation_scripts(html), [])
        self.assertIsNone(extract_payload(html))

    def test_qualifying_script_without_marker(self):
        html = '<script nonce="n">var serverResponse = {mapping: 1};</script>'
        self.assertEqual(len(find_conversation_scripts(html)), 1)
        self.assertIsNone(extract_payload(html))

    def test_empty_or_missing_html(self):
        self.assertIsNone(extract_payload(""))
        self.assertIsNone(extract_payload(None))


class TestCollectPayloadCandidates(unittest.TestCase):

    def test_joined_chunks_come_first(self):
        payload_json = json.dumps(build_conversation_graph(), ensure_ascii=False)
        html = build_share_html(payload_json, chunks=3)

        candidates = collect_payload_candidates(html)

        self.assertEqual(candidates[0], payload_json)
        self.assertEqual(len(candidates), 4)
        self.assertEqual(parse_conversation_array(candidates[0])[1], "direct")

    def test_no_qualifying_script(self):
        self.assertEqual(collect_payload_candidates("<html><body>nothing</body></html>"), [])


class TestParseConversationArray(unittest.TestCase):

    def test_direct(self):
        self.assertEqual(parse_conversation_array('["a", 1]'), (["a", 1], "direct"))

    def test_numeric_stream_prefix(self):
        self.assertEqual(parse_conversation_array('12:["a"]'), (["a"], "strip-numeric-prefix"))

    def test_slice_between_brackets(self):
        self.assertEqual(parse_conversation_array('P:x ["a"] ;'), (["a"], "slice-array-brackets"))

    def test_double_encoded(self):
        payload = json.dumps(json.dumps(["a"]))
        self.assertEqual(parse_conversation_array(payload), (["a"], "direct-double-parse"))

    def test_rejects_non_arrays_and_garbage(self):
        self.assertIsNone(parse_conversation_array('{"mapping": {}}'))
        self.assertIsNone(parse_conversation_array("not json"))
        self.assertIsNone(parse_conversation_array("   "))
        self.assertIsNone(parse_conversation_array(None))

if __name__ == '__main__':
    unittest.main()
