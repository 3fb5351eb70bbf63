from tokenswap.pubsub import EventArguments, PubSubManager, SwapEvents
from tests.unittest import TestCase


class PubSubTestCase(TestCase):
    def test_duplicate_subscribe(self) -> None:
        def noop(event: SwapEvents, args: EventArguments) -> None:
            pass
        pubsub = PubSubManager()
        pubsub.subscribe(SwapEvents.SWAP_EXECUTED, noop)
        pubsub.subscribe(SwapEvents.SWAP_EXECUTED, noop)
        self.assertEqual(1, len(pubsub._subscribers[SwapEvents.SWAP_EXECUTED]))

    def test_publish_and_unsubscribe(self) -> None:
        received: list[tuple[SwapEvents, EventArguments]] = []

        def handler(event: SwapEvents, args: EventArguments) -> None:
            received.append((event, args))

        pubsub = PubSubManager()
        pubsub.subscribe(SwapEvents.POOL_CREATED, handler)
        pubsub.publish(SwapEvents.POOL_CREATED, pool='a/b', shares=10)
        pubsub.publish(SwapEvents.SWAP_EXECUTED, pool='a/b')
        self.assertEqual(len(received), 1)
        event, args = received[0]
        self.assertEqual(event, SwapEvents.POOL_CREATED)
        self.assertEqual((args.pool, args.shares), ('a/b', 10))
        self.assertIn('shares', args)

        pubsub.unsubscribe(SwapEvents.POOL_CREATED, handler)
        pubsub.unsubscribe(SwapEvents.POOL_CREATED, handler)
        pubsub.publish(SwapEvents.POOL_CREATED, pool='a/b', shares=10)
        self.assertEqual(len(received), 1)
