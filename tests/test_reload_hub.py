from datetime import timedelta

from tornado import gen
from tornado.testing import AsyncTestCase, gen_test

from reload_hub import SIGNAL, ReloadHub


class TestReloadHub(AsyncTestCase):

    def setUp(self):
        super().setUp()
        self.hub = ReloadHub(backlog=2)

    @gen_test
    async def test_fan_out(self):
        first = self.hub.subscribe()
        second = self.hub.subscribe()
        self.assertEqual(len(self.hub), 2)
        self.assertNotEqual(first.id, second.id)

        self.assertEqual(self.hub.publish(), 2)
        self.assertIs(await first.get(), SIGNAL)
        self.assertIs(await second.get(), SIGNAL)

    @gen_test
    async def test_no_replay_for_late_subscriber(self):
        self.assertEqual(self.hub.publish(), 0)
        late = self.hub.subscribe()
        with self.assertRaises(gen.TimeoutError):
            await gen.with_timeout(timedelta(seconds=0.2), late.get())

    @gen_test
    async def test_lagging_subscriber_does_not_block_others(self):
        stalled = self.hub.subscribe()
        active = self.hub.subscribe()
        for _ in range(3):
            self.hub.publish()
            self.assertIs(await active.get(), SIGNAL)
        # backlog of 2: the third signal was dropped for the stalled client only
        self.assertIs(await stalled.get(), SIGNAL)
        self.assertIs(await stalled.get(), SIGNAL)
        with self.assertRaises(gen.TimeoutError):
            await gen.with_timeout(timedelta(seconds=0.1), stalled.get())

    @gen_test
    async def test_unsubscribe_wakes_consumer(self):
        subscription = self.hub.subscribe()
        waiter = subscription.get()
        self.hub.unsubscribe(subscription)
        self.assertIsNone(await waiter)
        self.assertEqual(len(self.hub), 0)
        self.assertEqual(self.hub.publish(), 0)

    @gen_test
    async def test_unsubscribe_is_idempotent(self):
        subscription = self.hub.subscribe()
        self.hub.unsubscribe(subscription)
        self.hub.unsubscribe(subscription)
        self.assertEqual(len(self.hub), 0)
        self.assertIsNone(await subscription.get())

    @gen_test
    async def test_closed_with_full_queue(self):
        subscription = self.hub.subscribe()
        self.hub.publish()
        self.hub.publish()
        self.hub.unsubscribe(subscription)
        self.assertIs(await subscription.get(), SIGNAL)
        self.assertIs(await subscription.get(), SIGNAL)
        self.assertIsNone(await subscription.get())
