"""
Tests for the Claude Code agent provider.
"""

import asyncio
import json
from unittest.mock import patch

import pytest

from agent_llm.config import DEFAULT_ALLOWED_TOOLS, DEFAULT_MODEL, ClaudeCodeConfig, LoggingConfig, Settings
from agent_llm.errors import (
    AgentSessionError,
    JSONValidationError,
    ProviderError,
    ProviderErrorKind,
)
from agent_llm.providers.claude_code import ClaudeCodeProvider, SessionOutput, extract_json, validate_json
from agent_llm.providers.prompt import JSON_DIRECTIVE
from agent_llm.providers.types import LLMResponse, Message, ToolCall
from tests._sdk_testkit import assistant, system_event, text, tool_use

JSON_FORMAT = {"type": "json_object"}


class TestInitialization:
    """Test provider construction."""

    def test_defaults(self, provider):
        """Default model, token hint and read-only tool set."""
        assert provider.model_name == DEFAULT_MODEL
        assert provider.max_tokens == 4096
        assert provider.allowed_tools == DEFAULT_ALLOWED_TOOLS

    def test_keyword_overrides(self, scripted_query):
        """Keyword arguments override the config."""
        provider = ClaudeCodeProvider(model="claude-opus-4-1", max_tokens=1024, allowed_tools=["Read"])

        assert provider.model_name == "claude-opus-4-1"
        assert provider.max_tokens == 1024
        assert provider.allowed_tools == ("Read",)

    def test_mapping_config(self, scripted_query):
        """A memory-app style config mapping is accepted."""
        provider = ClaudeCodeProvider(
            {"model": "claude-haiku-4-5", "modelProperties": {"maxTokens": 2048, "allowedTools": ["Grep"]}}
        )

        assert provider.model_name == "claude-haiku-4-5"
        assert provider.max_tokens == 2048
        assert provider.allowed_tools == ("Grep",)

    def test_initialization_no_package(self):
        """Constructing without the SDK installed raises ImportError."""
        with patch("agent_llm.providers.claude_code.CLAUDE_AGENT_SDK_AVAILABLE", False):
            with pytest.raises(ImportError, match="claude-agent-sdk"):
                ClaudeCodeProvider()

    def test_from_settings(self, scripted_query):
        """from_settings uses the settings' provider config and logger config."""
        settings = Settings(
            claude_code=ClaudeCodeConfig(model="claude-haiku-4-5"),
            logging=LoggingConfig(level="DEBUG", format="json"),
        )

        provider = ClaudeCodeProvider.from_settings(settings)

        assert provider.model_name == "claude-haiku-4-5"
        assert provider.logger.json_output is True


class TestSessionOptions:
    """Test what is submitted to the agent session."""

    async def test_options(self, provider, scripted_query):
        """Options carry the config plus the fixed session invariants."""
        scripted_query.script(assistant(text("ok")))

        await provider.generate_response([Message.system("Be terse."), Message.user("2+2?")])

        options = scripted_query.last_options
        assert options.model == DEFAULT_MODEL
        assert options.system_prompt == "Be terse."
        assert options.allowed_tools == list(DEFAULT_ALLOWED_TOOLS)
        assert options.max_turns == 1
        assert options.include_partial_messages is False
        assert options.permission_mode == "bypassPermissions"
        assert options.setting_sources == []

    async def test_prompt_is_transcript(self, provider, scripted_query):
        """The prompt is the compiled transcript."""
        scripted_query.script(assistant(text("ok")))

        await provider.generate_response(
            [Message.user("Hello"), Message.assistant("Hi"), Message.user("Remember I like tea")]
        )

        assert scripted_query.last_prompt == "User: Hello\n\nAssistant: Hi\n\nUser: Remember I like tea"

    async def test_unknown_role_left_out_of_prompt(self, provider, scripted_query):
        """Dict messages with unrecognized roles are skipped, not rejected."""
        scripted_query.script(assistant(text("ok")))

        result = await provider.generate_response(
            [{"role": "developer", "content": "x"}, {"role": "user", "content": "hi"}]
        )

        assert result == "ok"
        assert scripted_query.last_prompt == "User: hi"

    async def test_empty_system_prompt_omitted(self, provider, scripted_query):
        """No system message means no system prompt option."""
        scripted_query.script(assistant(text("ok")))

        await provider.generate_response("Hello")

        assert scripted_query.last_options.system_prompt is None

    async def test_json_mode_adds_directive(self, provider, scripted_query):
        """JSON mode puts the directive in the system prompt."""
        scripted_query.script(assistant(text("{}")))

        await provider.generate_response([Message.user("facts")], response_format=JSON_FORMAT)

        assert scripted_query.last_options.system_prompt.strip() == JSON_DIRECTIVE

    async def test_caller_tools_not_forwarded(self, provider, scripted_query):
        """Caller tool definitions do not change the agent's tool set."""
        scripted_query.script(assistant(text("ok")))
        tools = [{"type": "function", "function": {"name": "add_memory", "parameters": {}}}]

        await provider.generate_response("Hello", tools=tools)

        assert scripted_query.last_options.allowed_tools == list(DEFAULT_ALLOWED_TOOLS)

    async def test_one_session_per_call(self, provider, scripted_query):
        """Each call submits exactly one session."""
        scripted_query.script(assistant(text("ok")))

        await provider.generate_response("Hello")

        assert len(scripted_query.calls) == 1


class TestResponseAssembly:
    """Test assembling the response from session events."""

    async def test_plain_text(self, provider, scripted_query):
        """A single text block comes back as a bare string."""
        scripted_query.script(assistant(text("4")))

        result = await provider.generate_response([Message.system("Be terse."), Message.user("2+2?")])

        assert result == "4"

    async def test_text_blocks_concatenated(self, provider, scripted_query):
        """Text from several messages and blocks is joined without separators."""
        scripted_query.script(
            assistant(text("Hello"), text(", ")),
            assistant(text("world")),
        )

        result = await provider.generate_response("Hi")

        assert result == "Hello, world"

    async def test_other_events_ignored(self, provider, scripted_query):
        """Non-assistant events contribute nothing."""
        scripted_query.script(system_event("init"), assistant(text("ok")), system_event("status"))

        result = await provider.generate_response("Hi")

        assert result == "ok"

    async def test_no_text(self, provider, scripted_query):
        """A session with no text yields an empty string."""
        scripted_query.script(system_event())

        result = await provider.generate_response("Hi")

        assert result == ""

    async def test_tool_calls_surface_structured_response(self, provider, scripted_query):
        """Tool-use blocks switch to the structured form, text order unaffected."""
        scripted_query.script(
            assistant(
                text("Looking. "),
                tool_use("Grep", {"pattern": "tea"}, id="toolu_a"),
                text("Found it."),
            ),
            assistant(tool_use("Read", {"file_path": "notes.md"}, id="toolu_b"), text(" Done.")),
        )

        result = await provider.generate_response("What do I drink?")

        assert isinstance(result, LLMResponse)
        assert result.role == "assistant"
        assert result.content == "Looking. Found it. Done."
        assert [tc.name for tc in result.tool_calls] == ["Grep", "Read"]
        assert [tc.id for tc in result.tool_calls] == ["toolu_a", "toolu_b"]
        assert result.tool_calls[0].arguments == '{"pattern":"tea"}'
        assert result.tool_calls[1].parse_arguments() == {"file_path": "notes.md"}

    async def test_tool_only_response(self, provider, scripted_query):
        """Tool calls without text still produce the structured form."""
        scripted_query.script(assistant(tool_use("Glob", {"pattern": "*.md"})))

        result = await provider.generate_response("List notes")

        assert result == LLMResponse(
            content="",
            tool_calls=[ToolCall(name="Glob", arguments='{"pattern":"*.md"}', id="toolu_01")],
        )

    async def test_stream_drained_and_closed(self, provider, scripted_query):
        """The session stream is consumed to the end and closed."""
        scripted_query.script(assistant(text("a")), assistant(text("b")))

        await provider.generate_response("Hi")

        assert scripted_query.exhausted.is_set()
        assert scripted_query.closed


class TestJSONMode:
    """Test JSON extraction and validation."""

    async def test_json_passthrough(self, provider, scripted_query):
        """Valid JSON comes back as text, not a parsed object."""
        scripted_query.script(assistant(text('{"facts": ["likes tea"]}')))

        result = await provider.generate_response("facts", response_format=JSON_FORMAT)

        assert result == '{"facts": ["likes tea"]}'
        assert isinstance(result, str)

    async def test_json_extracted_from_prose(self, provider, scripted_query):
        """Leading prose across blocks is dropped."""
        scripted_query.script(assistant(text("Sure: ")), assistant(text('{"x":1}')))

        result = await provider.generate_response(
            [Message.user("list facts as json")], response_format=JSON_FORMAT
        )

        assert result == '{"x":1}'

    async def test_json_extracted_with_trailing_noise(self, provider, scripted_query):
        """Noise on both sides is dropped."""
        scripted_query.script(assistant(text('noise {"a":1} trailing')))

        result = await provider.generate_response("facts", response_format="json_object")

        assert result == '{"a":1}'

    async def test_invalid_json_raises(self, provider, scripted_query):
        """Unparseable output raises a validation-kind ProviderError with the raw text."""
        scripted_query.script(assistant(text("not json at all")))

        with pytest.raises(ProviderError) as exc_info:
            await provider.generate_response("facts", response_format=JSON_FORMAT)

        error = exc_info.value
        assert isinstance(error, JSONValidationError)
        assert error.kind == ProviderErrorKind.VALIDATION_FAILURE
        assert error.raw_content == "not json at all"
        assert "not json at all" in str(error)
        assert error.retryable is False

    async def test_invalid_json_reports_extracted_text(self, provider, scripted_query):
        """The error carries the extracted span that failed to parse."""
        scripted_query.script(assistant(text("Here {not: valid} ok")))

        with pytest.raises(JSONValidationError) as exc_info:
            await provider.generate_response("facts", response_format=JSON_FORMAT)

        assert exc_info.value.raw_content == "{not: valid}"

    @pytest.mark.parametrize("raw", ['{"score": NaN}', '{"score": Infinity}', '{"score": -Infinity}'])
    async def test_non_standard_constants_rejected(self, provider, scripted_query, raw):
        """NaN and Infinity are not JSON and fail validation."""
        scripted_query.script(assistant(text(raw)))

        with pytest.raises(ProviderError) as exc_info:
            await provider.generate_response("facts", response_format=JSON_FORMAT)

        assert isinstance(exc_info.value, JSONValidationError)
        assert exc_info.value.raw_content == raw

    async def test_text_mode_skips_validation(self, provider, scripted_query):
        """Without JSON mode, non-JSON text is returned untouched."""
        scripted_query.script(assistant(text('noise {"a":1} trailing')))

        result = await provider.generate_response("facts", response_format={"type": "text"})

        assert result == 'noise {"a":1} trailing'

    async def test_json_with_tool_calls(self, provider, scripted_query):
        """JSON content and tool calls combine in the structured form."""
        scripted_query.script(assistant(tool_use("Read", {"file_path": "a.md"}), text('Result: {"ok": true}')))

        result = await provider.generate_response("facts", response_format=JSON_FORMAT)

        assert isinstance(result, LLMResponse)
        assert result.content == '{"ok": true}'
        assert len(result.tool_calls) == 1


class TestErrorHandling:
    """Test error translation."""

    async def test_submit_failure_wrapped(self, provider, scripted_query):
        """A failure starting the session becomes a session-kind ProviderError."""
        scripted_query.script(submit_error=ConnectionError("CLI not found"))

        with pytest.raises(ProviderError) as exc_info:
            await provider.generate_response("Hi")

        error = exc_info.value
        assert isinstance(error, AgentSessionError)
        assert error.kind == ProviderErrorKind.SESSION_FAILURE
        assert "CLI not found" in error.message
        assert isinstance(error.cause, ConnectionError)
        assert error.__cause__ is error.cause
        assert error.context.provider == "claude_code"
        assert error.context.request_id.startswith("req_")

    async def test_stream_failure_wrapped(self, provider, scripted_query):
        """A failure mid-stream discards partial text and raises ProviderError."""
        scripted_query.script(assistant(text("partial")), stream_error=RuntimeError("process exited with code 1"))

        with pytest.raises(AgentSessionError, match="process exited with code 1"):
            await provider.generate_response("Hi")

        assert scripted_query.closed

    async def test_timeout_wrapped(self, provider, scripted_query):
        """A timeout raised by the SDK is wrapped like any other failure."""
        scripted_query.script(stream_error=asyncio.TimeoutError("control request timed out"))

        with pytest.raises(AgentSessionError, match="control request timed out"):
            await provider.generate_response("Hi")

    async def test_cancellation_propagates(self, provider, scripted_query):
        """Cancelling the caller cancels the call and closes the session stream."""
        scripted_query.script(assistant(text("partial")), hang=True)

        task = asyncio.create_task(provider.generate_response("Hi"))
        await asyncio.wait_for(scripted_query.exhausted.wait(), timeout=1)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        assert scripted_query.closed

    async def test_error_logged(self, provider, scripted_query, caplog):
        """Failures are logged with their kind."""
        scripted_query.script(assistant(text("nope")))

        with pytest.raises(JSONValidationError):
            await provider.generate_response("facts", response_format=JSON_FORMAT)

        assert '"error_kind": "validation_failure"' in caplog.text


class TestGenerateChat:
    """Test the always-structured entry point."""

    async def test_wraps_plain_text(self, provider, scripted_query):
        """Bare text is wrapped as an assistant LLMResponse."""
        scripted_query.script(assistant(text("4")))

        result = await provider.generate_chat([Message.user("2+2?")])

        assert result == LLMResponse(content="4", role="assistant")
        assert result.tool_calls is None

    async def test_passes_structured_through(self, provider, scripted_query):
        """A structured response is returned unchanged."""
        scripted_query.script(assistant(text("ok"), tool_use("Read", {"file_path": "a"})))

        result = await provider.generate_chat("Hi")

        assert result.content == "ok"
        assert result.tool_calls[0].name == "Read"

    async def test_errors_unchanged(self, provider, scripted_query):
        """generate_chat raises the same errors as generate_response."""
        scripted_query.script(submit_error=OSError("spawn failed"))

        with pytest.raises(AgentSessionError, match="spawn failed"):
            await provider.generate_chat("Hi")


class TestConcurrency:
    """Test independent concurrent calls."""

    async def test_concurrent_calls_do_not_share_buffers(self, scripted_query):
        """Concurrent calls each assemble only their own session's output."""
        answers = {"User: a": "alpha", "User: b": "beta"}

        async def per_prompt_query(*, prompt, options):
            await asyncio.sleep(0)
            yield assistant(text(answers[prompt][:2]))
            await asyncio.sleep(0)
            yield assistant(text(answers[prompt][2:]))

        with patch("agent_llm.providers.claude_code.query", per_prompt_query):
            provider = ClaudeCodeProvider()
            results = await asyncio.gather(
                provider.generate_response("a"),
                provider.generate_response("b"),
            )

        assert results == ["alpha", "beta"]


class TestHelpers:
    """Test module-level helpers."""

    def test_extract_json_greedy(self):
        """Extraction spans from the first '{' to the last '}'."""
        assert extract_json('a {"x": {"y": 1}} b {"z": 2} c') == '{"x": {"y": 1}} b {"z": 2}'

    def test_extract_json_multiline(self):
        """Extraction crosses newlines."""
        assert extract_json('Result:\n{\n  "a": 1\n}\n') == '{\n  "a": 1\n}'

    def test_extract_json_no_match(self):
        """Text without braces is returned unchanged."""
        assert extract_json("[1, 2]") == "[1, 2]"

    def test_validate_json_strict(self):
        """Standard JSON passes, NaN does not."""
        validate_json('{"a": [1, 2.5, null]}')
        with pytest.raises(ValueError, match="NaN"):
            validate_json("[NaN]")

    def test_session_output_counts_events(self):
        """Every event is counted, only assistant content is kept."""
        output = SessionOutput()
        output.add_event(system_event())
        output.add_event(assistant(text("x"), tool_use("Read", {"file_path": "f"})))

        assert output.event_count == 2
        assert output.content == "x"
        assert json.loads(output.tool_calls[0].arguments) == {"file_path": "f"}
