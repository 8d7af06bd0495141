import pytest
from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from channels.testing import WebsocketCommunicator
from django.contrib.auth.models import AnonymousUser

from apps.jobs.notify import user_group
from apps.jobs.ws import EvaluationStatusConsumer


@pytest.fixture(autouse=True)
def in_memory_layer(settings):
    settings.CHANNEL_LAYERS = {"default": {"BACKEND": "channels.layers.InMemoryChannelLayer"}}


async def _connect_and_receive(user):
    communicator = WebsocketCommunicator(EvaluationStatusConsumer.as_asgi(), "/ws/evaluations/")
    communicator.scope["user"] = user
    connected, _ = await communicator.connect()
    assert connected
    await get_channel_layer().group_send(
        user_group(user.pk), {"type": "notify", "payload": {"evaluation_id": "e1", "status": "completed"}}
    )
    message = await communicator.receive_json_from(timeout=2)
    await communicator.disconnect()
    return message


async def _connect_anonymous():
    communicator = WebsocketCommunicator(EvaluationStatusConsumer.as_asgi(), "/ws/evaluations/")
    communicator.scope["user"] = AnonymousUser()
    connected, code = await communicator.connect()
    return connected, code


@pytest.mark.django_db
def test_status_push_reaches_signed_in_user(user):
    message = async_to_sync(_connect_and_receive)(user)

    assert message == {"evaluation_id": "e1", "status": "completed"}


def test_anonymous_socket_is_closed():
    connected, code = async_to_sync(_connect_anonymous)()

    assert connected is False
    assert code == 4401
