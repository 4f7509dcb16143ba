"""
AI letter drafting.

Builds a prompt around a fixed JSON schema, asks the model for a single
JSON object, pulls that object out of whatever text comes back, and saves
it as a Letter in the ``received`` state.
"""
import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass, fields
from typing import Optional

import openai
from django.conf import settings
from django.db import DatabaseError, transaction
from django.utils import timezone
from openai import OpenAI

from common.exceptions import (
    GenerationError,
    GenerationParseError,
    GenerationTimeoutError,
    StoreError,
    ValidationError,
)


logger = logging.getLogger(__name__)

SCHEMA_VERSION = '1.0'

LETTER_SCHEMA = {
    'type': 'object',
    'required': ['schema_version', 'title', 'date', 'content'],
    'properties': {
        'schema_version': {'type': 'string'},
        'title': {'type': 'string'},
        'date': {'type': 'string', 'pattern': r'^\d{4}-\d{2}-\d{2}$'},
        'sender_name': {'type': 'string'},
        'sender_address': {'type': 'string'},
        'attorney_name': {'type': 'string'},
        'recipient_name': {'type': 'string'},
        'matter': {'type': 'string'},
        'resolution': {'type': 'string'},
        'jurisdiction': {'type': 'string'},
        'tone': {'type': 'string'},
        'content': {'type': 'string'},
        'summary': {'type': 'string'},
        'action_deadline': {'type': 'string'},
        'tags': {'type': 'array', 'items': {'type': 'string'}},
        'metadata': {
            'type': 'object',
            'properties': {
                'estimated_read_time_seconds': {'type': 'number'},
                'structured_sections': {
                    'type': 'array',
                    'items': {
                        'type': 'object',
                        'properties': {
                            'heading': {'type': 'string'},
                            'body': {'type': 'string'},
                        },
                    },
                },
            },
        },
    },
}

REQUIRED_FIELDS = ('sender_name', 'attorney_name', 'recipient_name', 'matter', 'resolution')

# Fields where the model's normalized value wins over what the user typed
AI_PREFERRED_FIELDS = (
    'title', 'sender_name', 'sender_address', 'attorney_name',
    'recipient_name', 'matter', 'resolution', 'jurisdiction',
)

CHAR_FIELDS = ('title', 'sender_name', 'attorney_name', 'recipient_name', 'jurisdiction')

DEFAULT_TONE = 'firm but professional'


@dataclass
class DraftRequest:
    """A validated letter request."""
    sender_name: str
    attorney_name: str
    recipient_name: str
    matter: str
    resolution: str
    title: Optional[str] = None
    sender_address: Optional[str] = None
    jurisdiction: Optional[str] = None
    tone: Optional[str] = None
    extra_notes: Optional[str] = None
    date: Optional[str] = None

    @classmethod
    def from_payload(cls, payload) -> 'DraftRequest':
        """Build from a request body. Raises ValidationError on a missing required field."""
        payload = payload or {}
        if not isinstance(payload, Mapping):
            raise ValidationError('Invalid request.')
        values = {}
        for field in fields(cls):
            raw = payload.get(field.name)
            values[field.name] = str(raw).strip() if raw not in (None, '') else None

        for name in REQUIRED_FIELDS:
            if not values.get(name):
                raise ValidationError(f'Missing required field: {name}')

        return cls(**values)


def build_prompt(request: DraftRequest):
    """Return (system_message, user_message) for the drafting call."""
    tone = request.tone or DEFAULT_TONE
    system_message = f'''You are a professional legal drafting assistant. Produce a single JSON object exactly matching the provided schema. No extra text, no explanation. Tone: "{tone}" Use YYYY-MM-DD dates.

JSON Schema: {json.dumps(LETTER_SCHEMA)}

Create a professional legal letter with the following structure:
1. Proper legal letterhead format
2. Date and recipient information
3. Clear statement of the matter
4. Professional but firm tone
5. Specific resolution demands
6. Appropriate legal language and formatting'''

    user_message = f'''Create a legal letter with these details:
- Title: {request.title or 'Legal Matter'}
- Sender: {request.sender_name}
- Sender Address: {request.sender_address or ''}
- Attorney/Firm: {request.attorney_name}
- Recipient: {request.recipient_name}
- Matter: {request.matter}
- Desired Resolution: {request.resolution}
- Jurisdiction: {request.jurisdiction or 'General'}
- Tone: {tone}
- Date: {request.date or timezone.localdate().isoformat()}

Additional Notes: {request.extra_notes or 'None'}

Use schema_version "{SCHEMA_VERSION}". Produce the JSON now.'''

    return system_message, user_message


def extract_first_json(text: str) -> str:
    """
    Return the substring from the first '{' to the brace that closes it.

    Leading or trailing commentary around the object is ignored.
    """
    start = text.find('{') if text else -1
    if start == -1:
        raise GenerationParseError('No JSON found in response')

    depth = 0
    for index in range(start, len(text)):
        char = text[index]
        if char == '{':
            depth += 1
        elif char == '}':
            depth -= 1
            if depth == 0:
                return text[start:index + 1]

    raise GenerationParseError('Unbalanced JSON in response')


def parse_ai_output(text: str) -> dict:
    """Extract and validate the model's letter object."""
    try:
        result = json.loads(extract_first_json(text))
    except json.JSONDecodeError as e:
        raise GenerationParseError(f'Invalid JSON in response: {e}')

    if not isinstance(result, dict):
        raise GenerationParseError('AI output is not a JSON object')

    for name in ('content', 'title'):
        value = result.get(name)
        if not isinstance(value, str) or not value.strip():
            raise GenerationParseError('Invalid AI output: missing required fields')

    return result


class LetterDraftService:
    """Generates a letter draft with OpenAI and stores it."""

    def __init__(self, client=None):
        self._client = client

    @property
    def client(self):
        if self._client is None:
            api_key = settings.OPENAI_API_KEY
            if not api_key:
                raise GenerationError('AI drafting is not configured. Please contact support.')
            self._client = OpenAI(
                api_key=api_key,
                timeout=settings.DRAFT_TIMEOUT_SECONDS,
                max_retries=settings.DRAFT_MAX_RETRIES,
            )
        return self._client

    def generate(self, user, payload):
        """
        Validate ``payload``, draft the letter and persist it.

        Returns the saved Letter (status ``received``).
        """
        request = DraftRequest.from_payload(payload)
        raw_output = self._complete(request)
        ai_output = parse_ai_output(raw_output)
        return self._save_letter(user, request, ai_output)

    def _complete(self, request: DraftRequest) -> str:
        system_message, user_message = build_prompt(request)
        try:
            response = self.client.chat.completions.create(
                model=settings.OPENAI_DRAFT_MODEL,
                messages=[
                    {"role": "system", "content": system_message},
                    {"role": "user", "content": user_message},
                ],
                temperature=0,
                max_tokens=settings.DRAFT_MAX_OUTPUT_TOKENS,
                response_format={"type": "json_object"},
            )
        except openai.APITimeoutError:
            logger.warning('Letter generation timed out')
            raise GenerationTimeoutError()
        except openai.OpenAIError as e:
            logger.error(f'OpenAI error during letter generation: {str(e)}')
            raise GenerationError()

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise GenerationError('No content generated')
        return content

    def _save_letter(self, user, request: DraftRequest, ai_output: dict):
        from letters.models import Letter

        values = {}
        for name in AI_PREFERRED_FIELDS:
            ai_value = ai_output.get(name)
            if isinstance(ai_value, str) and ai_value.strip():
                values[name] = ai_value.strip()
            else:
                values[name] = getattr(request, name) or ''

        values['title'] = values['title'] or 'Untitled Letter'
        for name in CHAR_FIELDS:
            values[name] = values[name][:255]

        try:
            with transaction.atomic():
                letter = Letter.objects.create(
                    user=user,
                    content=ai_output['content'],
                    ai_meta=ai_output,
                    status=Letter.STATUS_RECEIVED,
                    **values,
                )
        except DatabaseError:
            logger.exception(f'Database error saving letter for user {user.id}')
            raise StoreError()

        logger.info(f'Letter {letter.id} drafted for user {user.id}')
        return letter
