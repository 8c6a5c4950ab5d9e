from unittest.mock import MagicMock

from mediareader.errors import InferenceError, MediaEncodingError
from mediareader.executor import RequestExecutor
from mediareader.models import FileRef, MediaKind, MediaPayload, UrlRef


def _executor(client, **kwargs):
    delays = []
    executor = RequestExecutor(client, sleep=delays.append, **kwargs)
    return executor, delays


def test_success_on_first_attempt(run_config):
    client = MagicMock()
    client.complete.return_value = "a dog on a beach"
    executor, delays = _executor(client)

    result = executor.execute(UrlRef("https://x.test/dog.jpg"), "describe", run_config)

    assert result.source_label == "https://x.test/dog.jpg"
    assert result.text == "a dog on a beach"
    assert not result.is_error
    assert delays == []
    prompt, payload, config = client.complete.call_args[0]
    assert prompt == "describe"
    assert payload == MediaPayload(kind=MediaKind.IMAGE, content="https://x.test/dog.jpg")
    assert config is run_config


def test_always_failing_item_uses_four_attempts_with_linear_backoff(run_config):
    client = MagicMock()
    client.complete.side_effect = [InferenceError(f"HTTP error 503: attempt {n}") for n in range(1, 5)]
    executor, delays = _executor(client)

    result = executor.execute(UrlRef("https://x.test/a.jpg"), "describe", run_config)

    assert client.complete.call_count == 4
    assert delays == [1.0, 2.0, 3.0]
    assert result.is_error
    assert result.text == "Error: HTTP error 503: attempt 4"


def test_recovers_after_transient_failures(run_config):
    client = MagicMock()
    client.complete.side_effect = [InferenceError("HTTP error 500: x"), InferenceError("Invalid API response format"), "ok"]
    executor, delays = _executor(client)

    result = executor.execute(UrlRef("https://x.test/a.jpg"), "describe", run_config)

    assert result.text == "ok"
    assert not result.is_error
    assert delays == [1.0, 2.0]


def test_encode_failure_counts_as_attempt(run_config, tmp_path):
    client = MagicMock()
    executor, delays = _executor(client)

    result = executor.execute(FileRef.from_path(tmp_path / "missing.png"), "describe", run_config)

    client.complete.assert_not_called()
    assert len(delays) == 3
    assert result.is_error
    assert result.source_label == "missing.png"
    assert "Failed to read file 'missing.png'" in result.text


def test_unexpected_exception_never_escapes(run_config):
    client = MagicMock()
    client.complete.side_effect = KeyError("surprise")
    executor, _ = _executor(client, max_retries=0)

    result = executor.execute(UrlRef("https://x.test/a.jpg"), "describe", run_config)

    assert result.is_error
    assert "surprise" in result.text


def test_custom_encoder_errors_are_contained(run_config):
    encoder = MagicMock()
    encoder.encode.side_effect = MediaEncodingError("bad reference")
    executor, delays = _executor(MagicMock(), encoder=encoder, max_retries=1, retry_base_delay=0.5)

    result = executor.execute(UrlRef("https://x.test/a.jpg"), "describe", run_config)

    assert encoder.encode.call_count == 2
    assert delays == [0.5]
    assert result.text == "Error: bad reference"
