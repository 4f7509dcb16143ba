import logging

from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from accounts.permissions import IsAdminRole
from common.exceptions import AppError, GenerationError, StoreError
from letters.models import Letter
from letters.services.draft_service import LetterDraftService
from .serializers import LetterSerializer, LetterStatusSerializer

logger = logging.getLogger(__name__)


def get_draft_service():
    """Factory so tests can swap in a service with a fake AI client."""
    return LetterDraftService()


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def generate_draft(request):
    """Draft a letter with AI from the submitted details."""
    try:
        letter = get_draft_service().generate(request.user, request.data)
    except (GenerationError, StoreError) as e:
        logger.exception(f'Letter generation failed for user {request.user.id}')
        return Response(
            {'error': 'Failed to generate letter draft'},
            status=e.status_code
        )
    except AppError as e:
        return Response({'error': e.message}, status=e.status_code)

    return Response({'letter': LetterSerializer(letter).data})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def letter_list(request):
    """The caller's letters, newest first."""
    letters = Letter.objects.filter(user=request.user).order_by('-created_at')
    return Response({'letters': LetterSerializer(letters, many=True).data})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def letter_detail(request, letter_id):
    letter = get_object_or_404(Letter, id=letter_id, user=request.user)
    return Response({'letter': LetterSerializer(letter).data})


@api_view(['POST'])
@permission_classes([IsAdminRole])
def letter_update_status(request, letter_id):
    """Move a letter forward in the review timeline (admin only)."""
    letter = get_object_or_404(Letter, id=letter_id)

    serializer = LetterStatusSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    new_status = serializer.validated_data['status']

    if not letter.can_transition_to(new_status):
        return Response(
            {'error': f'Cannot move letter from {letter.status} to {new_status}'},
            status=status.HTTP_400_BAD_REQUEST
        )

    letter.status = new_status
    letter.save(update_fields=['status', 'updated_at'])
    logger.info(f'Letter {letter.id} moved to {new_status} by {request.user.id}')

    return Response({'letter': LetterSerializer(letter).data})
