# petloc/services/test_live_query.py
from datetime import datetime, timezone

import pytest

from petloc.services.live_query import LiveQuery, LiveQueryError, sse_stream


def _to_item(doc):
    data = doc.to_dict()
    data['id'] = doc.id
    return data


def test_initial_snapshot_and_updates_are_sorted(fake_db):
    items = fake_db.collection('items')
    items.document('a').set({'created_at': datetime(2024, 1, 1, tzinfo=timezone.utc)})

    with LiveQuery(items, _to_item, sort_key='created_at') as live:
        updates = live.updates(timeout=0.01)
        assert [i['id'] for i in next(updates)] == ['a']

        items.document('b').set({'created_at': datetime(2024, 2, 1, tzinfo=timezone.utc)})
        items.document('c').set({})
        assert [i['id'] for i in next(updates)] == ['b', 'a']
        # 정렬 키가 없는 문서는 맨 뒤
        assert [i['id'] for i in next(updates)] == ['b', 'a', 'c']
        assert [i['id'] for i in live.items] == ['b', 'a', 'c']


def test_timeout_yields_heartbeat(fake_db):
    with LiveQuery(fake_db.collection('empty'), _to_item) as live:
        updates = live.updates(timeout=0.01)
        assert next(updates) == []
        assert next(updates) is None


def test_unsubscribes_on_exit(fake_db):
    items = fake_db.collection('items')
    with LiveQuery(items, _to_item):
        assert len(fake_db.watches) == 1
    assert fake_db.watches == []


def test_snapshot_handling_error_is_surfaced(fake_db):
    items = fake_db.collection('items')
    items.document('a').set({'x': 1})

    def broken(doc):
        raise KeyError('campo obrigatório')

    with LiveQuery(items, broken) as live:
        with pytest.raises(LiveQueryError):
            next(live.updates(timeout=0.01))
        assert 'campo obrigatório' in live.error


def test_sse_stream_frames_and_release(fake_db):
    items = fake_db.collection('items')
    items.document('a').set({'name': 'Rex'})
    live = LiveQuery(items, _to_item)

    stream = sse_stream(live, lambda rows: [r['name'] for r in rows], heartbeat=0.01)
    assert next(stream) == 'event: snapshot\ndata: ["Rex"]\n\n'
    assert next(stream) == ': keep-alive\n\n'

    stream.close()
    assert fake_db.watches == []


def test_sse_stream_emits_error_event(fake_db):
    fake_db.fail_on('items', RuntimeError('permission denied'))
    stream = sse_stream(LiveQuery(fake_db.collection('items'), _to_item), list, heartbeat=0.01)

    frame = next(stream)

    assert frame.startswith('event: error\n')
    assert 'SUBSCRIPTION_FAILED' in frame
