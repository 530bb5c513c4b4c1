import pytest
from asgiref.sync import async_to_sync, sync_to_async
from channels.testing import WebsocketCommunicator

from beds.realtime.consumers import UpdatesConsumer
from beds.services.notify import publish, ward_topic

# bound at import, before the autouse fixture swaps ``notify.publish`` out
send_event = sync_to_async(publish)


def test_ward_topic_slugs():
    assert ward_topic('General Ward') == 'ward.general-ward'
    assert ward_topic('') == 'ward.unassigned'


@pytest.mark.django_db
def test_subscriber_gets_only_its_topics():
    async def scenario():
        comm = WebsocketCommunicator(UpdatesConsumer.as_asgi(), '/ws/updates/')
        connected, _ = await comm.connect()
        assert connected
        assert (await comm.receive_json_from())['type'] == 'welcome'

        await send_event('bed.updated', {'bedNumber': 'GW-001'}, topics=['ward.general-ward'])
        first = await comm.receive_json_from()
        assert first['type'] == 'bed.updated' and first['data'] == {'bedNumber': 'GW-001'}

        await comm.send_json_to({'action': 'subscribe', 'ward': 'ICU'})
        assert await comm.receive_json_from() == {'type': 'subscribed', 'topic': 'ward.icu'}

        await send_event('bed.updated', {'bedNumber': 'GW-002'}, topics=['ward.general-ward'])
        assert await comm.receive_nothing(timeout=0.2)

        await send_event('bed.updated', {'bedNumber': 'ICU-001'}, topics=['ward.icu', 'bed.1'])
        got = await comm.receive_json_from()
        assert got['data'] == {'bedNumber': 'ICU-001'}
        assert await comm.receive_nothing(timeout=0.2)

        await comm.send_json_to({'action': 'unsubscribe', 'ward': 'ICU'})
        assert (await comm.receive_json_from())['type'] == 'unsubscribed'
        await send_event('alert.created', {'id': 1})
        assert (await comm.receive_json_from())['type'] == 'alert.created'

        await comm.send_json_to({'action': 'watch'})
        assert (await comm.receive_json_from())['type'] == 'error'
        await comm.disconnect()

    async_to_sync(scenario)()
