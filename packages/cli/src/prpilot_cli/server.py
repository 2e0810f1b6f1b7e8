"""Flask webhook server.

Routes:
  POST /webhook/github   GitHub ``pull_request`` deliveries, HMAC-verified
  POST /webhook/asana    Asana webhook handshake and event batches

Every delivery that passes signature checks is acknowledged with 200 whatever
the pipeline decided, so platforms do not redeliver deliberate skips. Only an
invalid signature is answered with 401.
"""

from __future__ import annotations

import logging

from flask import Flask, jsonify, make_response, request

from prpilot_core.errors import SignatureInvalid
from prpilot_core.ingest import handle_asana_events, handle_github_delivery, verify_signature
from prpilot_core.models import Channel, InboundEvent
from prpilot_core.reviewer import Services

logger = logging.getLogger(__name__)


def _received(channel: Channel, payload) -> InboundEvent:
    event = InboundEvent(channel=channel, payload=payload)
    logger.debug("Received %s delivery at %s", event.channel.value, event.received_at)
    return event


def _asana_events(payload) -> list:
    """Event records from an Asana delivery: ``{"events": [...]}`` or a bare list."""
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        return payload.get("events") or []
    return []


def _asana_channel(record) -> Channel:
    resource = record.get("resource") if isinstance(record, dict) else None
    if isinstance(resource, dict) and resource.get("resource_type") == "story":
        return Channel.TASK_COMMENT
    return Channel.TASK_CREATED


def create_app(services: Services) -> Flask:
    app = Flask("prpilot")

    @app.post("/webhook/github")
    def github_webhook():
        body = request.get_data()
        try:
            verify_signature(body, request.headers.get("X-Hub-Signature-256"), services.config.get("webhook_secret"))
        except SignatureInvalid as e:
            logger.warning("Rejected GitHub delivery %s: %s", request.headers.get("X-GitHub-Delivery"), e)
            return "Invalid signature.", 401

        event_type = request.headers.get("X-GitHub-Event")
        payload = request.get_json(silent=True)
        event = _received(Channel.CODE_HOST_REVIEW, payload if isinstance(payload, dict) else {})
        try:
            outcome = handle_github_delivery(event_type, event.payload, services)
        except Exception:
            logger.exception("Failed to process GitHub delivery %s", request.headers.get("X-GitHub-Delivery"))
            return jsonify(status="error"), 200
        return jsonify(status=outcome.status.value, reason=outcome.reason), 200

    @app.post("/webhook/asana")
    def asana_webhook():
        hook_secret = request.headers.get("X-Hook-Secret")
        if hook_secret:
            logger.info("Answering Asana webhook handshake.")
            response = make_response("", 200)
            response.headers["X-Hook-Secret"] = hook_secret
            return response

        events = _asana_events(request.get_json(silent=True))
        if not events:
            return "No events to process.", 200

        for record in events:
            _received(_asana_channel(record), record)
        outcomes = handle_asana_events(events, services)
        return jsonify(processed=len(events), outcomes=[o.status.value for o in outcomes]), 200

    return app
