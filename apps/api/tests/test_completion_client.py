import io
import json
import unittest
from unittest import mock
from urllib import error

from app.domain.ai.providers.base import CompletionFailure, CompletionSuccess, FailureKind
from app.domain.ai.providers.groq import GroqProvider, failure_from_http_error
from app.domain.ai.service import CompletionClient


MESSAGES = [
    {"role": "system", "content": "Be brief."},
    {"role": "user", "content": "Hi"},
]


def _provider() -> GroqProvider:
    return GroqProvider(
        api_key="gsk_test",
        model="llama-3.3-70b-versatile",
        base_url="https://api.groq.com/openai/v1/",
        timeout_sec=5,
    )


class GroqProviderTests(unittest.TestCase):
    def test_requires_api_key(self) -> None:
        with self.assertRaises(ValueError):
            GroqProvider(api_key="", model="m", base_url="https://example.test")

    def test_payload_with_json_mode(self) -> None:
        payload = _provider().build_payload(MESSAGES, max_tokens=4000, json_mode=True)
        self.assertEqual(payload["model"], "llama-3.3-70b-versatile")
        self.assertEqual(payload["max_tokens"], 4000)
        self.assertEqual(payload["messages"], MESSAGES)
        self.assertEqual(payload["response_format"], {"type": "json_object"})

    def test_payload_without_json_mode(self) -> None:
        payload = _provider().build_payload(MESSAGES, max_tokens=500)
        self.assertNotIn("response_format", payload)

    @mock.patch("app.domain.ai.providers.groq.request.urlopen")
    def test_complete_returns_first_choice_verbatim(self, urlopen: mock.MagicMock) -> None:
        body = {"choices": [{"message": {"content": "  Hello there  "}}, {"message": {"content": "ignored"}}]}
        urlopen.return_value.__enter__.return_value.read.return_value = json.dumps(body).encode("utf-8")

        result = _provider().complete(MESSAGES, max_tokens=50, json_mode=False)

        self.assertEqual(result, CompletionSuccess(text="  Hello there  "))
        sent = urlopen.call_args.args[0]
        self.assertEqual(sent.full_url, "https://api.groq.com/openai/v1/chat/completions")
        self.assertEqual(sent.get_header("Authorization"), "Bearer gsk_test")
        self.assertEqual(json.loads(sent.data)["max_tokens"], 50)
        self.assertEqual(urlopen.call_args.kwargs["timeout"], 5)

    @mock.patch("app.domain.ai.providers.groq.request.urlopen")
    def test_complete_maps_http_429(self, urlopen: mock.MagicMock) -> None:
        urlopen.side_effect = error.HTTPError(
            "https://api.groq.com/openai/v1/chat/completions",
            429,
            "Too Many Requests",
            None,
            io.BytesIO(b'{"error": {"message": "Rate limit reached for model"}}'),
        )

        result = _provider().complete(MESSAGES, max_tokens=50)

        self.assertIsInstance(result, CompletionFailure)
        self.assertIs(result.kind, FailureKind.RATE_LIMITED)
        self.assertEqual(result.status_code, 429)
        self.assertEqual(result.detail, "Rate limit reached for model")

    @mock.patch("app.domain.ai.providers.groq.request.urlopen")
    def test_complete_without_choices_is_unknown(self, urlopen: mock.MagicMock) -> None:
        urlopen.return_value.__enter__.return_value.read.return_value = b'{"choices": []}'

        result = _provider().complete(MESSAGES, max_tokens=50)

        self.assertEqual(result, CompletionFailure(kind=FailureKind.UNKNOWN, detail="groq_choices_missing"))

    def test_failure_from_http_error(self) -> None:
        unauthorized = failure_from_http_error(401, '{"error": {"message": "Invalid API Key"}}')
        self.assertIs(unauthorized.kind, FailureKind.UNAUTHORIZED)
        self.assertEqual(unauthorized.detail, "Invalid API Key")

        server = failure_from_http_error(503, "")
        self.assertIs(server.kind, FailureKind.UNKNOWN)
        self.assertEqual(server.detail, "groq_http_error:503")
        self.assertEqual(server.status_code, 503)

        not_json = failure_from_http_error(500, "<html>bad gateway</html>")
        self.assertEqual(not_json.detail, "groq_http_error:500")


class _RecordingProvider:
    def __init__(self, result) -> None:
        self.result = result
        self.calls: list[dict] = []

    def complete(self, messages, *, max_tokens, json_mode=False):
        self.calls.append({"messages": messages, "max_tokens": max_tokens, "json_mode": json_mode})
        return self.result


class CompletionClientTests(unittest.TestCase):
    def setUp(self) -> None:
        self.created_for: list[str] = []
        self.provider = _RecordingProvider(CompletionSuccess(text="OK"))

        def factory(api_key: str) -> _RecordingProvider:
            self.created_for.append(api_key)
            return self.provider

        self.client = CompletionClient(model="test-model", provider_factory=factory)

    def test_missing_credential_never_builds_provider(self) -> None:
        for credential in (None, "", "   "):
            result = self.client.complete(credential, MESSAGES, max_tokens=10)
            self.assertIsInstance(result, CompletionFailure)
            self.assertIs(result.kind, FailureKind.MISSING_CREDENTIAL)
        self.assertEqual(self.created_for, [])
        self.assertEqual(self.provider.calls, [])

    def test_builds_a_fresh_provider_per_call(self) -> None:
        self.client.complete("gsk_a", MESSAGES, max_tokens=10)
        self.client.complete("gsk_b", MESSAGES, max_tokens=20, json_mode=True)

        self.assertEqual(self.created_for, ["gsk_a", "gsk_b"])
        self.assertEqual(self.provider.calls[1]["max_tokens"], 20)
        self.assertTrue(self.provider.calls[1]["json_mode"])


if __name__ == "__main__":
    unittest.main()
