"""Tests for the tool-call orchestration loop."""

import asyncio

import pytest

from tests.conftest import FakeWeatherClient, ScriptedModel, make_echo_tool
from weather_agent.errors import ApiRequestFailedError, ModelTransportError
from weather_agent.models.conversation import Conversation
from weather_agent.models.messages import AssistantText, AssistantToolRequest, ToolInvocation, ToolResult, UserText
from weather_agent.services.executor import ToolExecutor
from weather_agent.services.model import EmptyReply, TextReply, ToolRequestsReply, UnrecognizedReply
from weather_agent.services.orchestrator import (
    NO_RESPONSE_TEXT,
    TOOL_LIMIT_TEXT,
    UNSUPPORTED_RESPONSE_TEXT,
    TurnOrchestrator,
)
from weather_agent.tools.registry import ToolsRegistry
from weather_agent.tools.weather import create_weather_tool


def tool_request(*invocations: ToolInvocation) -> ToolRequestsReply:
    return ToolRequestsReply(invocations=tuple(invocations))


def echo_call(call_id: str, text: str = "hi") -> ToolInvocation:
    return ToolInvocation(call_id=call_id, tool_name="echo", arguments={"text": text})


def new_conversation(registry: ToolsRegistry, user_text: str) -> Conversation:
    conversation = Conversation(system_prompt="system", tools=registry.declarations(), session_id="session-1")
    conversation.append_user_text(user_text)
    return conversation


class TestTextReplies:
    """Tests for turns that end without tool use."""

    @pytest.mark.asyncio
    async def test_text_reply_ends_turn(self, registry, conversation):
        """Test that a plain text reply is appended and ends the turn."""
        model = ScriptedModel([TextReply(text="  It is sunny.  ")])
        orchestrator = TurnOrchestrator(model, ToolExecutor(registry))
        conversation.append_user_text("Is it sunny?")

        result = await orchestrator.run_turn(conversation)

        assert result.model_calls == 1
        assert result.rounds == 0
        assert conversation.latest_text() == "It is sunny."

    @pytest.mark.asyncio
    async def test_model_receives_prompt_tools_and_transcript(self, registry, conversation):
        """Test that each model call gets the full conversation."""
        model = ScriptedModel([TextReply(text="Hello")])
        orchestrator = TurnOrchestrator(model, ToolExecutor(registry))
        conversation.append_user_text("Hi")

        await orchestrator.run_turn(conversation)

        call = model.calls[0]
        assert call["system_prompt"] == conversation.system_prompt
        assert [tool.name for tool in call["tools"]] == ["get_weather", "get_current_time"]
        assert call["transcript"] == [UserText(text="Hi")]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("reply", "expected"),
        [
            (EmptyReply(), NO_RESPONSE_TEXT),
            (tool_request(), NO_RESPONSE_TEXT),
            (TextReply(text="   "), NO_RESPONSE_TEXT),
            (UnrecognizedReply(block_types=("thinking",)), UNSUPPORTED_RESPONSE_TEXT),
        ],
    )
    async def test_degraded_replies_fall_back_to_text(self, registry, conversation, reply, expected):
        """Test that empty or unknown replies end the turn with a fallback message."""
        orchestrator = TurnOrchestrator(ScriptedModel([reply]), ToolExecutor(registry))
        conversation.append_user_text("Hello?")

        result = await orchestrator.run_turn(conversation)

        assert result.model_calls == 1
        assert conversation.latest_text() == expected


class TestToolRounds:
    """Tests for dispatching tool requests."""

    @pytest.mark.asyncio
    async def test_weather_end_to_end(self, registry, weather_client, credentials):
        """Test the Seattle weather request from user input to final answer."""
        model = ScriptedModel(
            [
                tool_request(
                    ToolInvocation(
                        call_id="toolu_01",
                        tool_name="get_weather",
                        arguments={"city": "Seattle", "country": "US", "unit": "F"},
                    )
                ),
                TextReply(text="It's 68°F and cloudy in Seattle with 70% humidity."),
            ]
        )
        orchestrator = TurnOrchestrator(model, ToolExecutor(registry))
        conversation = new_conversation(registry, "weather in Seattle, US in F")

        result = await orchestrator.run_turn(conversation)

        assert result.model_calls == 2
        assert result.rounds == 1
        assert weather_client.calls == [("test-weather-key", "Seattle,US")]

        tool_result = conversation.messages[2]
        assert tool_result == ToolResult(
            call_id="toolu_01",
            payload_json='{"temperature":68.0,"condition":"Cloudy","humidity":70}',
        )
        # The second model call sees the tool result
        assert model.calls[1]["transcript"][-1] == tool_result
        assert conversation.latest_text() == "It's 68°F and cloudy in Seattle with 70% humidity."

    @pytest.mark.asyncio
    async def test_results_match_requested_call_ids(self):
        """Test that every requested call gets exactly one result."""
        registry = ToolsRegistry([make_echo_tool()])
        conversation = new_conversation(registry, "echo three things")
        model = ScriptedModel(
            [
                tool_request(
                    echo_call("a"),
                    ToolInvocation(call_id="b", tool_name="does_not_exist", arguments={}),
                    ToolInvocation(call_id="c", tool_name="echo", arguments={}),
                ),
                TextReply(text="Done"),
            ]
        )

        await TurnOrchestrator(model, ToolExecutor(registry)).run_turn(conversation)

        messages = conversation.messages
        assert isinstance(messages[0], UserText)
        assert isinstance(messages[1], AssistantToolRequest)
        results = {message.call_id: message for message in messages[2:5]}
        assert set(results) == {"a", "b", "c"}
        assert results["a"].payload_json == '{"echo":"hi"}'
        assert results["b"].payload_json == '{"error":"unsupported tool: does_not_exist"}'
        assert results["c"].payload_json == '{"error":"missing parameter: text"}'
        assert messages[5] == AssistantText(text="Done")

    @pytest.mark.asyncio
    async def test_provider_failure_does_not_end_session(self, credentials):
        """Test that a failing provider is reported to the model and the turn continues."""
        failing_client = FakeWeatherClient(
            error=ApiRequestFailedError("Failed to fetch weather data: 500", status_code=500)
        )
        registry = ToolsRegistry([create_weather_tool(failing_client)])
        conversation = new_conversation(registry, "weather in Oslo")
        model = ScriptedModel(
            [
                tool_request(
                    ToolInvocation(
                        call_id="toolu_01", tool_name="get_weather", arguments={"city": "Oslo", "country": "NO", "unit": "C"}
                    )
                ),
                TextReply(text="Sorry, the weather service is unavailable."),
            ]
        )

        result = await TurnOrchestrator(model, ToolExecutor(registry)).run_turn(conversation)

        assert result.model_calls == 2
        tool_result = model.calls[1]["transcript"][-1]
        assert tool_result.is_error is True
        assert "500" in tool_result.payload_json
        assert conversation.latest_text() == "Sorry, the weather service is unavailable."

    @pytest.mark.asyncio
    async def test_multiple_rounds(self):
        """Test that the loop keeps going while the model asks for tools."""
        registry = ToolsRegistry([make_echo_tool()])
        conversation = new_conversation(registry, "two rounds please")
        model = ScriptedModel(
            [
                tool_request(echo_call("a", "one")),
                tool_request(echo_call("b", "two")),
                TextReply(text="one two"),
            ]
        )

        result = await TurnOrchestrator(model, ToolExecutor(registry)).run_turn(conversation)

        assert result.rounds == 2
        assert result.model_calls == 3
        assert len(conversation) == 6
        assert conversation.latest_text() == "one two"


class TestConcurrency:
    """Tests for bounded concurrent dispatch."""

    @pytest.mark.asyncio
    async def test_at_most_three_tools_in_flight(self):
        """Test that five requests with a cap of three never exceed three in flight."""
        in_flight = 0
        peak = 0

        async def slow_echo(params):
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.01)
            in_flight -= 1
            return {"echo": params.text}

        registry = ToolsRegistry([make_echo_tool(handler=slow_echo)])
        conversation = new_conversation(registry, "five at once")
        model = ScriptedModel(
            [
                tool_request(*(echo_call(f"call_{i}", str(i)) for i in range(5))),
                TextReply(text="done"),
            ]
        )

        await TurnOrchestrator(model, ToolExecutor(registry), max_concurrent_tools=3).run_turn(conversation)

        assert peak == 3
        assert {message.call_id for message in conversation.messages[2:7]} == {f"call_{i}" for i in range(5)}

    @pytest.mark.asyncio
    async def test_all_results_appended_before_next_model_call(self):
        """Test that the next model call sees the complete result batch."""

        async def staggered_echo(params):
            await asyncio.sleep(0.001 * int(params.text))
            return {"echo": params.text}

        registry = ToolsRegistry([make_echo_tool(handler=staggered_echo)])
        conversation = new_conversation(registry, "go")
        model = ScriptedModel(
            [
                tool_request(*(echo_call(f"call_{i}", str(5 - i)) for i in range(5))),
                TextReply(text="done"),
            ]
        )

        await TurnOrchestrator(model, ToolExecutor(registry), max_concurrent_tools=2).run_turn(conversation)

        second_call = model.calls[1]["transcript"]
        assert len([message for message in second_call if isinstance(message, ToolResult)]) == 5

    def test_concurrency_must_be_positive(self, registry):
        """Test that a zero concurrency cap is rejected."""
        with pytest.raises(ValueError, match="max_concurrent_tools"):
            TurnOrchestrator(ScriptedModel(), ToolExecutor(registry), max_concurrent_tools=0)


class TestTermination:
    """Tests for errors and the tool round limit."""

    @pytest.mark.asyncio
    async def test_model_transport_error_propagates(self, registry, conversation):
        """Test that model channel failures are not swallowed."""
        model = ScriptedModel([ModelTransportError("Failed to call Anthropic API: Connection error.")])
        conversation.append_user_text("Hello")

        with pytest.raises(ModelTransportError):
            await TurnOrchestrator(model, ToolExecutor(registry)).run_turn(conversation)

        assert conversation.messages == (UserText(text="Hello"),)

    @pytest.mark.asyncio
    async def test_tool_round_limit(self):
        """Test that a model requesting tools forever is stopped after the limit."""
        registry = ToolsRegistry([make_echo_tool()])
        conversation = new_conversation(registry, "loop forever")
        model = ScriptedModel([tool_request(echo_call(f"call_{i}")) for i in range(3)])

        result = await TurnOrchestrator(model, ToolExecutor(registry), max_tool_rounds=2).run_turn(conversation)

        assert result.rounds == 2
        assert result.model_calls == 3
        assert result.hit_tool_limit is True
        assert conversation.latest_text() == TOOL_LIMIT_TEXT
        # The refused third request is not part of the transcript
        requested = [m for m in conversation.messages if isinstance(m, AssistantToolRequest)]
        assert [request.call_ids for request in requested] == [["call_0"], ["call_1"]]

    @pytest.mark.asyncio
    async def test_unbounded_rounds(self):
        """Test that disabling the limit lets the model decide when to stop."""
        registry = ToolsRegistry([make_echo_tool()])
        conversation = new_conversation(registry, "many rounds")
        replies = [tool_request(echo_call(f"call_{i}")) for i in range(15)]
        model = ScriptedModel([*replies, TextReply(text="finally")])

        result = await TurnOrchestrator(model, ToolExecutor(registry), max_tool_rounds=None).run_turn(conversation)

        assert result.rounds == 15
        assert conversation.latest_text() == "finally"


class TestDeterminism:
    """Tests for replaying the same inputs."""

    @pytest.mark.asyncio
    async def test_replay_produces_identical_transcript(self, credentials, weather_response):
        """Test that fixed model and provider behavior yield the same transcript."""

        async def run_once():
            registry = ToolsRegistry([create_weather_tool(FakeWeatherClient(response=weather_response))])
            conversation = new_conversation(registry, "weather in Seattle and Portland in C")
            model = ScriptedModel(
                [
                    tool_request(
                        ToolInvocation(
                            call_id="a",
                            tool_name="get_weather",
                            arguments={"city": "Seattle", "country": "US", "unit": "C"},
                        ),
                        ToolInvocation(call_id="b", tool_name="get_weather", arguments={"city": "Portland"}),
                    ),
                    TextReply(text="Seattle is 20°C."),
                ]
            )
            await TurnOrchestrator(model, ToolExecutor(registry)).run_turn(conversation)
            return [message.model_dump() for message in conversation.messages]

        assert await run_once() == await run_once()
