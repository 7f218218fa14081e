"""HTTP server: token mint, transcription proxy, summary and transcript correction."""

import logging
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import aiohttp
from aiohttp import web
from pydantic import ValidationError

from ..config import PingoConfig
from ..errors import UpstreamError
from ..models.wire import SummaryRequest, TranscriptProcessRequest, UtteranceList
from .upstream import OpenAIUpstream

logger = logging.getLogger(__name__)

CONFIG_KEY = web.AppKey("config", PingoConfig)
UPSTREAM_KEY = web.AppKey("upstream", object)

MAX_UPLOAD_BYTES = 25 * 1024 * 1024

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
}

SUMMARY_SYSTEM_PROMPT = """You are a helpful performance evaluator. Analyze the conversation and provide balanced, constructive feedback.

Guidelines:
- Summarize what actually happened in the conversation
- Identify both strengths and areas for improvement
- Be honest but supportive in your assessment
- Consider the context and what the user was trying to achieve
- Provide specific, actionable suggestions for improvement
- If the conversation was brief, focus on what can be learned from it

Provide a balanced summary that helps the user understand their performance and how to improve."""

SUMMARY_USER_PROMPT = (
    "Please analyze this conversation from a {context}:\n\n{conversation}\n\n"
    "**Task**: Provide a balanced summary of what happened and constructive feedback. "
    "Include both positive observations and areas for improvement. "
    "Make your feedback specific and actionable."
)

CORRECTION_SYSTEM_PROMPT = """You are a transcript correction specialist. Your job is to fix speech-to-text errors and create an accurate, properly formatted transcript.

RULES:
1. Fix obvious speech-to-text errors (e.g., "grocery store" when context suggests "Macy's")
2. Maintain the original meaning and flow of conversation
3. Don't add content that wasn't said
4. Fix grammar and punctuation for readability
5. Preserve the natural speaking style
6. Return ONLY a JSON array with format: [{{"role": "user" | "ai", "text": "corrected text"}}]

Context: This is a {scenario_type} practice session."""

CORRECTION_USER_PROMPT = (
    "Please correct this transcript and fix any speech-to-text errors. "
    "Pay special attention to misheard words that don't match the context:\n\n"
    "{conversation}\n\nReturn only the corrected JSON array."
)

_FENCE_RE = re.compile(r"```json\n?|\n?```")


def strip_code_fences(text: str) -> str:
    """Remove markdown ```json fences around a model reply."""
    return _FENCE_RE.sub("", text.strip())


def parse_corrected_transcript(reply: Optional[str]) -> Optional[List[Dict[str, str]]]:
    """Parse a correction reply into role/text dicts, or None if it is malformed."""
    if reply is None:
        return None
    try:
        payloads = UtteranceList.validate_json(strip_code_fences(reply))
    except (ValidationError, ValueError) as e:
        logger.warning(f"Failed to parse corrected transcript: {e}")
        return None
    return [p.model_dump() for p in payloads]


def _error(message: str, status: int) -> web.Response:
    return web.json_response({"error": message}, status=status)


@web.middleware
async def cors_middleware(request: web.Request, handler) -> web.StreamResponse:
    """Answer preflight requests and tag every response for cross-origin use."""
    if request.method == "OPTIONS":
        response = web.Response(status=200)
    else:
        try:
            response = await handler(request)
        except web.HTTPMethodNotAllowed:
            response = _error("Method not allowed", 405)
        except web.HTTPException as e:
            e.headers.update(CORS_HEADERS)
            raise
        except Exception as e:
            logger.error(f"Unhandled error in {request.method} {request.path}: {e}", exc_info=True)
            response = _error("Internal server error", 500)
    response.headers.update(CORS_HEADERS)
    return response


def _get_upstream(request: web.Request) -> Optional[OpenAIUpstream]:
    upstream = request.app[UPSTREAM_KEY]
    if upstream is not None:
        return upstream

    config = request.app[CONFIG_KEY]
    try:
        api_key = config.get_api_key()
    except ValueError as e:
        logger.error(str(e))
        return None
    return OpenAIUpstream(api_key, base_url=config.get('openai.base_url'))


async def _read_json(request: web.Request) -> Any:
    try:
        return await request.json()
    except ValueError:
        return None


async def handle_test(request: web.Request) -> web.Response:
    return web.json_response({
        "message": "API is working!",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    })


async def handle_session(request: web.Request) -> web.Response:
    """Mint a short-lived realtime credential for a client."""
    config = request.app[CONFIG_KEY]
    upstream = _get_upstream(request)
    if upstream is None:
        return _error(f"Missing {config.get('openai.api_key_env', 'OPENAI_API_KEY')}", 500)

    try:
        session = await upstream.create_realtime_session(
            model=config.get('realtime.model'),
            voice=config.get('openai.session_voice', 'alloy'),
        )
    except UpstreamError as e:
        logger.error(f"Realtime session error: {e.status} - {e.body}")
        return _error("Failed to create realtime session", 500)
    except aiohttp.ClientError as e:
        logger.error(f"Realtime session request failed: {e}")
        return _error("Failed to create realtime session", 500)

    logger.info("Realtime session minted")
    return web.json_response(session)


async def handle_transcription(request: web.Request) -> web.Response:
    """Forward an uploaded audio file to speech-to-text."""
    form = await request.post()
    upload = form.get("file")
    if not isinstance(upload, web.FileField):
        logger.info("Transcription request without a file")
        return _error("No file uploaded", 400)

    upstream = _get_upstream(request)
    if upstream is None:
        return _error("Internal server error", 500)

    config = request.app[CONFIG_KEY]
    audio = upload.file.read()
    logger.info(f"Transcribing upload '{upload.filename}' ({len(audio)} bytes)")
    try:
        text = await upstream.transcribe(
            audio,
            filename=upload.filename or "speech.webm",
            content_type=upload.content_type or "application/octet-stream",
            model=config.get('openai.transcription_model', 'whisper-1'),
        )
    except UpstreamError as e:
        logger.error(f"Transcription error: {e.status} - {e.body}")
        return _error("Transcription failed", e.status)
    except aiohttp.ClientError as e:
        logger.error(f"Transcription request failed: {e}")
        return _error("Internal server error", 500)

    return web.json_response({"text": text})


async def handle_summary(request: web.Request) -> web.Response:
    """Produce performance feedback for a conversation."""
    body = await _read_json(request)
    try:
        summary_request = SummaryRequest.model_validate(body)
    except ValidationError:
        return _error("No conversation text provided", 400)
    if not summary_request.conversationText:
        return _error("No conversation text provided", 400)

    upstream = _get_upstream(request)
    if upstream is None:
        return _error("Internal server error", 500)

    config = request.app[CONFIG_KEY]
    messages = [
        {"role": "system", "content": SUMMARY_SYSTEM_PROMPT},
        {"role": "user", "content": SUMMARY_USER_PROMPT.format(
            context=summary_request.scenarioContext,
            conversation=summary_request.conversationText,
        )},
    ]
    try:
        summary = await upstream.chat(
            messages,
            model=config.get('openai.summary_model', 'gpt-3.5-turbo'),
            temperature=0.3,
            max_tokens=500,
        )
    except UpstreamError as e:
        logger.error(f"Summary error: {e.status} - {e.body}")
        return _error("Summary generation failed", e.status)
    except aiohttp.ClientError as e:
        logger.error(f"Summary request failed: {e}")
        return _error("Internal server error", 500)

    if summary is None:
        logger.error("Summary reply had no text")
        return _error("Internal server error", 500)

    return web.json_response({"summary": summary})


async def handle_transcript_process(request: web.Request) -> web.Response:
    """Correct speech-to-text errors in a transcript.

    A reply that is not a JSON list of role/text objects falls back to the
    transcript as received.
    """
    body = await _read_json(request)
    try:
        process_request = TranscriptProcessRequest.model_validate(body)
    except ValidationError:
        return _error("No valid transcript provided", 400)

    raw = [u.model_dump() for u in process_request.rawTranscript]
    conversation = "\n".join(
        f"{'AI' if u['role'] == 'ai' else 'User'}: {u['text']}" for u in raw
    )
    logger.info(f"Processing transcript for scenario: {process_request.scenarioType}")

    upstream = _get_upstream(request)
    if upstream is None:
        return _error("Internal server error", 500)

    config = request.app[CONFIG_KEY]
    messages = [
        {"role": "system", "content": CORRECTION_SYSTEM_PROMPT.format(
            scenario_type=process_request.scenarioType,
        )},
        {"role": "user", "content": CORRECTION_USER_PROMPT.format(conversation=conversation)},
    ]
    try:
        reply = await upstream.chat(
            messages,
            model=config.get('openai.correction_model', 'gpt-4'),
            temperature=0.1,
            max_tokens=1000,
        )
    except UpstreamError as e:
        logger.error(f"Transcript processing error: {e.status} - {e.body}")
        return _error("Transcript processing failed", e.status)
    except aiohttp.ClientError as e:
        logger.error(f"Transcript processing request failed: {e}")
        return _error("Internal server error", 500)

    processed = parse_corrected_transcript(reply)
    if processed is None:
        processed = raw
    return web.json_response({"processedTranscript": processed})


def create_app(config: PingoConfig, upstream: Optional[OpenAIUpstream] = None) -> web.Application:
    """Build the server application.

    Args:
        config: Application configuration
        upstream: Upstream client to use; built per request from the
            environment credential if None
    """
    app = web.Application(middlewares=[cors_middleware], client_max_size=MAX_UPLOAD_BYTES)
    app[CONFIG_KEY] = config
    app[UPSTREAM_KEY] = upstream

    app.router.add_get("/api/test", handle_test)
    app.router.add_get("/session", handle_session)
    app.router.add_get("/api/session", handle_session)
    app.router.add_post("/api/openai/audio/transcriptions", handle_transcription)
    app.router.add_post("/api/summary", handle_summary)
    app.router.add_post("/api/transcript/process", handle_transcript_process)
    return app


def run_server(config: PingoConfig) -> None:
    """Run the server until interrupted."""
    host = config.get('server.host', '0.0.0.0')
    port = int(config.get('server.port', 3001))
    logger.info(f"Starting server on http://{host}:{port}")
    web.run_app(create_app(config), host=host, port=port)
