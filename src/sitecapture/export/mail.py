"""Message sink: RFC 2822 multipart message with the report attached, posted to a Gmail-style API."""

from __future__ import annotations

import base64
import logging
from email.mime.application import MIMEApplication
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formatdate
from typing import Iterable

import requests

from sitecapture.config import SessionConfig
from sitecapture.errors import DispatchFailure

logger = logging.getLogger(__name__)


def build_message(
    *,
    to: Iterable[str],
    cc: Iterable[str] = (),
    subject: str,
    body: str,
    attachment: bytes,
    attachment_name: str,
) -> MIMEMultipart:
    """multipart/mixed: plain-text body plus the PDF as a base64 attachment."""
    msg = MIMEMultipart("mixed")
    to, cc = list(to), list(cc)
    if to:
        msg["To"] = ", ".join(to)
    if cc:
        msg["Cc"] = ", ".join(cc)
    msg["Subject"] = subject
    msg["Date"] = formatdate(localtime=True)
    msg.attach(MIMEText(body, "plain", "utf-8"))
    part = MIMEApplication(attachment, _subtype="pdf", Name=attachment_name)
    part.add_header("Content-Disposition", "attachment", filename=attachment_name)
    msg.attach(part)
    return msg


def encode_raw(message: MIMEMultipart) -> str:
    """URL-safe base64 of the serialized message, padding stripped."""
    return base64.urlsafe_b64encode(message.as_bytes()).decode("ascii").rstrip("=")


class MessageClient:
    """POSTs {"raw": ...} with a bearer token. Raises DispatchFailure on transport error or non-2xx."""

    def __init__(self, url: str, timeout: float = 10.0) -> None:
        self._url = url
        self._timeout = timeout

    @classmethod
    def from_config(cls, config: SessionConfig) -> MessageClient:
        return cls(config.message_api_url, config.request_timeout)

    def send(self, raw: str, token: str) -> dict:
        headers = {"Authorization": f"Bearer {token}", "Content-Type": "application/json"}
        try:
            resp = requests.post(self._url, json={"raw": raw}, headers=headers, timeout=self._timeout)
        except requests.RequestException as e:
            logger.error("Message dispatch failed: %s", e)
            raise DispatchFailure(f"message API unreachable: {e}") from e
        if not 200 <= resp.status_code < 300:
            detail = _error_detail(resp)
            logger.error("Message API responded %s: %s", resp.status_code, detail)
            raise DispatchFailure(f"message API HTTP {resp.status_code}: {detail}")
        logger.info("Message sent: %s", resp.status_code)
        try:
            return resp.json()
        except ValueError:
            return {}


def _error_detail(resp: requests.Response) -> str:
    try:
        data = resp.json()
    except ValueError:
        return resp.text[:200]
    err = data.get("error") if isinstance(data, dict) else None
    if isinstance(err, dict):
        return str(err.get("message") or err)
    return str(err or data)[:200]
