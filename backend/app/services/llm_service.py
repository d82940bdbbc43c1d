"""
Bedrock (Claude) completion client shared by the summary and report services.
"""
from __future__ import annotations

import json
import re
import time
from typing import Any, Optional

import boto3
from botocore.exceptions import ClientError

from app.core.config import settings
from app.core.logger import logger


def extract_json(raw_text: str) -> Any:
    """
    Pull the first JSON object out of a model response.

    Handles ```json fences and stray preamble text around the object.
    """
    text = (raw_text or "").strip()
    fenced = re.search(r"```(?:json)?\s*(.*?)```", text, re.DOTALL)
    if fenced:
        text = fenced.group(1).strip()

    start = text.find("{")
    if start < 0:
        raise ValueError(f"LLM did not return a JSON object. Raw response: {raw_text[:500]}")

    try:
        # raw_decode stops at the end of the first object; trailing prose is ignored
        parsed, _ = json.JSONDecoder().raw_decode(text, start)
        return parsed
    except json.JSONDecodeError as exc:
        raise ValueError(f"Failed to parse LLM JSON response: {exc}. Raw: {raw_text[:500]}") from exc


class BedrockLlmService:
    """Thin wrapper over ``invoke_model`` with throttling retries."""

    def __init__(self) -> None:
        self.model: str = settings.BEDROCK_MODEL_ID
        self.max_retries: int = max(1, settings.BEDROCK_MAX_RETRIES)
        self.client = boto3.client(
            "bedrock-runtime",
            region_name=settings.AWS_REGION,
            aws_access_key_id=settings.AWS_ACCESS_KEY_ID or None,
            aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY or None,
        )

    def _invoke(self, body: dict) -> dict:
        for attempt in range(1, self.max_retries + 1):
            try:
                response = self.client.invoke_model(
                    modelId=self.model,
                    contentType="application/json",
                    accept="application/json",
                    body=json.dumps(body),
                )
                return json.loads(response["body"].read())
            except ClientError as e:
                code = e.response.get("Error", {}).get("Code", "")
                if code != "ThrottlingException" or attempt >= self.max_retries:
                    raise
                sleep_s = min(8.0, 0.8 * (2 ** (attempt - 1)))
                logger.warning("Bedrock throttled (attempt %s/%s), retrying in %.1fs", attempt, self.max_retries, sleep_s)
                time.sleep(sleep_s)
        raise RuntimeError("Bedrock retries exhausted")  # pragma: no cover

    def complete(
        self,
        prompt: str,
        system: Optional[str] = None,
        temperature: float = 0.3,
        max_tokens: int = 4096,
    ) -> str:
        """Send one user turn and return the assistant's text."""
        body = {
            "anthropic_version": "bedrock-2023-05-31",
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": [{"role": "user", "content": prompt}],
        }
        if system:
            body["system"] = system

        result = self._invoke(body)
        # Claude response: {"content": [{"type": "text", "text": "..."}], ...}
        text_parts = [
            block.get("text", "")
            for block in result.get("content", [])
            if isinstance(block, dict) and block.get("type") == "text"
        ]
        usage = result.get("usage") or {}
        logger.info(
            "Bedrock completion model=%s in=%s out=%s",
            self.model, usage.get("input_tokens"), usage.get("output_tokens"),
        )
        return "".join(text_parts)

    def complete_json(
        self,
        prompt: str,
        system: Optional[str] = None,
        temperature: float = 0.3,
        max_tokens: int = 4096,
    ) -> Any:
        raw_text = self.complete(prompt, system=system, temperature=temperature, max_tokens=max_tokens)
        return extract_json(raw_text)


llm_service = BedrockLlmService()
