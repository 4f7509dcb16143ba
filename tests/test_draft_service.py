"""Tests for AI letter drafting."""

import json
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import httpx
import openai
import pytest
from django.db import DatabaseError
from django.urls import reverse

from common.exceptions import (
    GenerationError,
    GenerationParseError,
    GenerationTimeoutError,
    StoreError,
    ValidationError,
)
from letters.models import Letter
from letters.services.draft_service import (
    DraftRequest,
    LetterDraftService,
    build_prompt,
    extract_first_json,
    parse_ai_output,
)


VALID_PAYLOAD = {
    'sender_name': 'Carla Customer',
    'attorney_name': 'Smith & Partners',
    'recipient_name': 'Acme Landlord LLC',
    'matter': 'Security deposit of $1,500 not returned after move-out.',
    'resolution': 'Return the full deposit within 14 days.',
    'jurisdiction': 'California',
}

AI_OUTPUT = {
    'schema_version': '1.0',
    'title': 'Demand for Return of Security Deposit',
    'date': '2024-05-01',
    'recipient_name': 'Acme Landlord, LLC',
    'content': 'Dear Acme Landlord, LLC...',
    'summary': 'Demand for deposit return.',
    'tags': ['deposit', 'landlord'],
}


def completion(content):
    """Shape of an OpenAI chat completion response."""
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


@pytest.fixture
def ai_client():
    client = MagicMock()
    client.chat.completions.create.return_value = completion(json.dumps(AI_OUTPUT))
    return client


class TestExtractFirstJson:

    def test_leading_commentary_and_nested_braces(self):
        text = 'Sure! {"title":"A","content":"B {nested}"}'
        assert extract_first_json(text) == '{"title":"A","content":"B {nested}"}'

    def test_trailing_text_ignored(self):
        assert extract_first_json('{"a": {"b": 1}} and then more {"c": 2}') == '{"a": {"b": 1}}'

    def test_no_object(self):
        with pytest.raises(GenerationParseError, match='No JSON found'):
            extract_first_json('I cannot help with that.')

    def test_unbalanced(self):
        with pytest.raises(GenerationParseError, match='Unbalanced'):
            extract_first_json('{"title": "A", "content": "B"')


class TestParseAiOutput:

    def test_valid(self):
        result = parse_ai_output('Here you go: ' + json.dumps(AI_OUTPUT))
        assert result['title'] == AI_OUTPUT['title']

    def test_invalid_json(self):
        with pytest.raises(GenerationParseError):
            parse_ai_output('{title: A}')

    def test_missing_content(self):
        with pytest.raises(GenerationParseError, match='missing required fields'):
            parse_ai_output('{"title": "A", "content": "  "}')


class TestDraftRequest:

    def test_non_object_body(self):
        with pytest.raises(ValidationError) as exc_info:
            DraftRequest.from_payload([1, 2])
        assert exc_info.value.message == 'Invalid request.'

    def test_prompt_carries_details(self):
        system_message, user_message = build_prompt(DraftRequest.from_payload(VALID_PAYLOAD))

        assert 'JSON Schema' in system_message
        assert 'firm but professional' in system_message
        assert 'Acme Landlord LLC' in user_message
        assert 'California' in user_message


@pytest.mark.django_db
class TestLetterDraftService:

    @pytest.mark.parametrize('field', ['sender_name', 'attorney_name', 'recipient_name', 'matter', 'resolution'])
    @pytest.mark.parametrize('blank', ['', '   '])
    def test_missing_required_field(self, user, ai_client, field, blank):
        payload = dict(VALID_PAYLOAD, **{field: blank})

        with pytest.raises(ValidationError) as exc_info:
            LetterDraftService(client=ai_client).generate(user, payload)

        assert exc_info.value.message == f'Missing required field: {field}'
        ai_client.chat.completions.create.assert_not_called()
        assert Letter.objects.count() == 0

    def test_client_uses_configured_timeout_without_retries(self, settings):
        settings.DRAFT_TIMEOUT_SECONDS = 45.0
        settings.DRAFT_MAX_RETRIES = 0

        client = LetterDraftService().client

        assert client.timeout == 45.0
        assert client.max_retries == 0

    def test_generate_saves_received_letter(self, user, ai_client):
        letter = LetterDraftService(client=ai_client).generate(user, VALID_PAYLOAD)

        assert letter.status == Letter.STATUS_RECEIVED
        assert letter.user == user
        assert letter.title == 'Demand for Return of Security Deposit'
        assert letter.content == 'Dear Acme Landlord, LLC...'
        # model's normalized value wins; user input fills gaps
        assert letter.recipient_name == 'Acme Landlord, LLC'
        assert letter.sender_name == 'Carla Customer'
        assert letter.ai_meta == AI_OUTPUT
        assert letter.get_tags() == ['deposit', 'landlord']

    def test_request_parameters(self, user, ai_client, settings):
        LetterDraftService(client=ai_client).generate(user, VALID_PAYLOAD)

        kwargs = ai_client.chat.completions.create.call_args.kwargs
        assert kwargs['model'] == settings.OPENAI_DRAFT_MODEL
        assert kwargs['temperature'] == 0
        assert kwargs['max_tokens'] == settings.DRAFT_MAX_OUTPUT_TOKENS
        assert kwargs['response_format'] == {'type': 'json_object'}
        assert [m['role'] for m in kwargs['messages']] == ['system', 'user']

    def test_validation_before_ai_call(self, user, ai_client):
        with pytest.raises(ValidationError):
            LetterDraftService(client=ai_client).generate(user, {'sender_name': 'X'})
        ai_client.chat.completions.create.assert_not_called()

    def test_timeout(self, user, ai_client):
        request = httpx.Request('POST', 'https://api.openai.com/v1/chat/completions')
        ai_client.chat.completions.create.side_effect = openai.APITimeoutError(request=request)

        with pytest.raises(GenerationTimeoutError):
            LetterDraftService(client=ai_client).generate(user, VALID_PAYLOAD)
        assert not Letter.objects.exists()

    def test_unparseable_output(self, user, ai_client):
        ai_client.chat.completions.create.return_value = completion('No letter today.')

        with pytest.raises(GenerationParseError):
            LetterDraftService(client=ai_client).generate(user, VALID_PAYLOAD)
        assert not Letter.objects.exists()

    def test_empty_completion(self, user, ai_client):
        ai_client.chat.completions.create.return_value = completion('')

        with pytest.raises(GenerationError):
            LetterDraftService(client=ai_client).generate(user, VALID_PAYLOAD)

    def test_store_failure(self, user, ai_client):
        with patch.object(Letter.objects, 'create', side_effect=DatabaseError('boom')):
            with pytest.raises(StoreError):
                LetterDraftService(client=ai_client).generate(user, VALID_PAYLOAD)

    def test_missing_api_key(self, user, settings):
        settings.OPENAI_API_KEY = ''
        with pytest.raises(GenerationError):
            LetterDraftService().generate(user, VALID_PAYLOAD)


@pytest.mark.django_db
class TestLettersAPI:

    def test_generate(self, auth_client, ai_client):
        with patch('letters.api.views.get_draft_service', return_value=LetterDraftService(client=ai_client)):
            response = auth_client.post(reverse('letters_api:generate_draft'), VALID_PAYLOAD, format='json')

        assert response.status_code == 200
        assert response.data['letter']['status'] == 'received'
        assert response.data['letter']['summary'] == 'Demand for deposit return.'

    def test_generate_failure_is_generic_500(self, auth_client, ai_client):
        ai_client.chat.completions.create.return_value = completion('nope')
        with patch('letters.api.views.get_draft_service', return_value=LetterDraftService(client=ai_client)):
            response = auth_client.post(reverse('letters_api:generate_draft'), VALID_PAYLOAD, format='json')

        assert response.status_code == 500
        assert response.data == {'error': 'Failed to generate letter draft'}

    def test_generate_missing_field_is_400(self, auth_client, ai_client):
        with patch('letters.api.views.get_draft_service', return_value=LetterDraftService(client=ai_client)):
            response = auth_client.post(reverse('letters_api:generate_draft'), {}, format='json')

        assert response.status_code == 400
        assert response.data == {'error': 'Missing required field: sender_name'}

    def test_generate_non_object_body_is_400(self, auth_client, ai_client):
        with patch('letters.api.views.get_draft_service', return_value=LetterDraftService(client=ai_client)):
            response = auth_client.post(reverse('letters_api:generate_draft'), [1, 2], format='json')

        assert response.status_code == 400
        assert response.data == {'error': 'Invalid request.'}
        assert Letter.objects.count() == 0

    def test_generate_requires_auth(self, api_client):
        response = api_client.post(reverse('letters_api:generate_draft'), VALID_PAYLOAD, format='json')
        assert response.status_code == 401

    def test_list_only_own_letters(self, auth_client, user, other_user, ai_client):
        service = LetterDraftService(client=ai_client)
        service.generate(user, VALID_PAYLOAD)
        service.generate(other_user, VALID_PAYLOAD)

        response = auth_client.get(reverse('letters_api:letter_list'))

        assert len(response.data['letters']) == 1

    def test_detail_of_other_users_letter_is_404(self, auth_client, other_user, ai_client):
        letter = LetterDraftService(client=ai_client).generate(other_user, VALID_PAYLOAD)

        response = auth_client.get(reverse('letters_api:letter_detail', args=[letter.id]))

        assert response.status_code == 404


@pytest.mark.django_db
class TestLetterStatus:

    @pytest.fixture
    def letter(self, user, ai_client):
        return LetterDraftService(client=ai_client).generate(user, VALID_PAYLOAD)

    def test_admin_moves_forward(self, admin_client, letter):
        url = reverse('letters_api:letter_update_status', args=[letter.id])

        assert admin_client.post(url, {'status': 'under_review'}, format='json').status_code == 200
        assert admin_client.post(url, {'status': 'posted'}, format='json').status_code == 200
        letter.refresh_from_db()
        assert letter.status == Letter.STATUS_POSTED

    def test_cannot_skip_or_go_back(self, admin_client, letter):
        url = reverse('letters_api:letter_update_status', args=[letter.id])

        response = admin_client.post(url, {'status': 'posted'}, format='json')
        assert response.status_code == 400

        letter.status = Letter.STATUS_UNDER_REVIEW
        letter.save()
        response = admin_client.post(url, {'status': 'received'}, format='json')
        assert response.status_code == 400

    def test_owner_cannot_change_status(self, auth_client, letter):
        url = reverse('letters_api:letter_update_status', args=[letter.id])

        response = auth_client.post(url, {'status': 'under_review'}, format='json')

        assert response.status_code == 403
