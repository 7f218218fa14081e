"""End-to-end conversation flow: controller, clients and server together.

Only the peer connection and the microphone are faked; credential minting,
SDP exchange, transcription and feedback all go over HTTP.
"""

import asyncio

import pytest
from aiohttp import test_utils

from pingo.clients.feedback import FeedbackClient
from pingo.config import PingoConfig
from pingo.models.scenario import Language, Scenario
from pingo.realtime.controller import RealtimeSessionController
from pingo.server.app import create_app
from pingo.server.upstream import OpenAIUpstream


def reply_by_prompt(body):
    if "transcript correction" in body["messages"][0]["content"]:
        return '```json\n[{"role": "user", "text": "Hola, me llamo Ana."}]\n```'
    return "Great first steps in Spanish."


def run_flow(fake_upstream, fake_capture, peer_factory, scenario):
    """Run ``scenario(controller, feedback)`` with the full HTTP stack in-process."""
    fake_upstream.chat_reply = reply_by_prompt

    async def main():
        async with test_utils.TestServer(fake_upstream.app()) as upstream_server:
            upstream = OpenAIUpstream("sk-test", base_url=str(upstream_server.make_url("/v1")))

            config = PingoConfig()
            config.set('realtime.url', str(upstream_server.make_url("/v1/realtime")))
            config.set('realtime.greeting_delay_seconds', 0.01)
            config.set('realtime.submit_delay_seconds', 0.0)
            config.set('realtime.channel_open_timeout_seconds', 1.0)

            async with test_utils.TestServer(create_app(config, upstream)) as pingo_server:
                config.set('api.base_url', str(pingo_server.make_url("")).rstrip('/'))
                controller = RealtimeSessionController(
                    config,
                    capture=fake_capture,
                    peer_connection_factory=peer_factory.create,
                )
                feedback = FeedbackClient(config.get('api.base_url'))
                return await scenario(controller, feedback)

    return asyncio.run(main())


@pytest.mark.integration
def test_full_conversation(fake_upstream, fake_capture, peer_factory):
    async def scenario(controller, feedback):
        await controller.connect()
        channel = peer_factory.peers[0].channel
        controller.set_scenario(Scenario.LANGUAGE_TUTOR, Language.SPANISH)
        await asyncio.sleep(0.05)

        channel.receive({"type": "response.created"})
        channel.receive({"type": "response.audio_transcript.delta", "delta": "¡Hola! "})
        channel.receive({"type": "response.audio_transcript.delta", "delta": "¿Cómo te llamas?"})
        channel.receive({"type": "output_audio_buffer.stopped"})

        controller.ptt_start()
        text = await controller.ptt_end()

        summary = await feedback.summarize(controller.transcript, Scenario.LANGUAGE_TUTOR)
        corrected = await feedback.correct_transcript(controller.transcript, Scenario.LANGUAGE_TUTOR)
        await controller.cleanup()
        return text, channel.sent_types, summary, corrected, controller.transcript.to_wire()

    text, sent_types, summary, corrected, wire = run_flow(fake_upstream, fake_capture, peer_factory, scenario)
    assert text == "Hola, me llamo Ana."
    assert sent_types == [
        "session.update",
        "response.create",
        "conversation.item.create",
        "response.create",
        "conversation.item.truncate",
        "response.cancel",
        "output_audio_buffer.clear",
    ]
    assert wire == [
        {"role": "ai", "text": "¡Hola! ¿Cómo te llamas?"},
        {"role": "user", "text": "Hola, me llamo Ana."},
    ]
    assert summary == "Great first steps in Spanish."
    assert [u.text for u in corrected] == ["Hola, me llamo Ana."]
    assert fake_capture.release_count == 1


@pytest.mark.integration
def test_credential_and_offer_reach_realtime_service(fake_upstream, fake_capture, peer_factory):
    async def scenario(controller, feedback):
        await controller.connect()
        await controller.cleanup()

    run_flow(fake_upstream, fake_capture, peer_factory, scenario)
    pc = peer_factory.peers[0]
    assert [call[0] for call in fake_upstream.calls] == ["sessions"]
    assert fake_upstream.offers == [{
        "sdp": pc.localDescription.sdp,
        "model": "gpt-4o-realtime-preview",
        "auth": "Bearer ek_live",
    }]
    assert pc.remoteDescription.sdp == "v=0\r\no=- answer\r\n"


@pytest.mark.integration
def test_token_failure_prevents_connection(fake_upstream, fake_capture, peer_factory):
    fake_upstream.status = 500

    async def scenario(controller, feedback):
        try:
            await controller.connect()
        except ConnectionError as e:
            return e
        return None

    error = run_flow(fake_upstream, fake_capture, peer_factory, scenario)
    assert isinstance(error, ConnectionError)
    assert peer_factory.peers == []
    assert fake_upstream.offers == []


@pytest.mark.integration
def test_transcription_failure_keeps_session_usable(fake_upstream, fake_capture, peer_factory):
    async def scenario(controller, feedback):
        await controller.connect()
        channel = peer_factory.peers[0].channel
        fake_upstream.status = 500
        controller.ptt_start()
        first = await controller.ptt_end()

        fake_upstream.status = 200
        controller.ptt_start()
        second = await controller.ptt_end()
        sent = list(channel.sent_types)
        await controller.cleanup()
        return first, second, sent

    first, second, sent = run_flow(fake_upstream, fake_capture, peer_factory, scenario)
    assert first is None
    assert second == "Hola, me llamo Ana."
    assert sent == ["conversation.item.create", "response.create"]
