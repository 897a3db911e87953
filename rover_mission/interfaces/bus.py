"""
Message bus contract

Topics (publish/subscribe) and services (request/response) as seen by the
mission core. The real transport lives outside this package; LoopbackBus
is an in-process implementation used by the simulation adapters and tests.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

Message = Dict[str, Any]
MessageCallback = Callable[[Message], None]
ServiceCallback = Callable[[Message], None]
ErrorCallback = Callable[[str], None]

# Service handlers answer through the respond callable, now or later
ServiceHandler = Callable[[Message, Callable[[Message], None]], None]


class Subscription:
    """Active topic subscription"""

    def __init__(self, bus: 'MessageBus', topic: str, callback: MessageCallback):
        self.bus = bus
        self.topic = topic
        self.callback = callback
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def unsubscribe(self):
        """Stop receiving messages (idempotent)"""
        if self._active:
            self._active = False
            self.bus._remove_subscription(self)


class MessageBus(ABC):
    """Publish/subscribe and request/response transport"""

    @abstractmethod
    def publish(self, topic: str, message: Message):
        """Publish a message on a topic"""

    @abstractmethod
    def subscribe(self, topic: str, callback: MessageCallback) -> Subscription:
        """Receive every message published on topic"""

    @abstractmethod
    def call_service(self, name: str, request: Message,
                     callback: ServiceCallback,
                     error_callback: Optional[ErrorCallback] = None):
        """Send a request; callback receives the single response"""

    @abstractmethod
    def advertise_service(self, name: str, handler: ServiceHandler):
        """Serve requests for name"""

    @abstractmethod
    def _remove_subscription(self, subscription: Subscription):
        """Detach a subscription (called by Subscription.unsubscribe)"""


class LoopbackBus(MessageBus):
    """
    In-process bus

    Messages are delivered synchronously, in publish order, to the
    subscribers present when publish() is called.
    """

    def __init__(self):
        self._subscriptions: Dict[str, List[Subscription]] = {}
        self._services: Dict[str, ServiceHandler] = {}
        self._published: List[tuple] = []

    @property
    def published(self) -> List[tuple]:
        """(topic, message) pairs published so far"""
        return list(self._published)

    def messages_on(self, topic: str) -> List[Message]:
        """Messages published on a single topic"""
        return [msg for t, msg in self._published if t == topic]

    def subscriber_count(self, topic: str) -> int:
        return len(self._subscriptions.get(topic, []))

    def publish(self, topic: str, message: Message):
        self._published.append((topic, message))
        subscribers = list(self._subscriptions.get(topic, []))
        logger.debug(f"Publish on {topic} to {len(subscribers)} subscriber(s)")

        for subscription in subscribers:
            if subscription.active:
                subscription.callback(message)

    def subscribe(self, topic: str, callback: MessageCallback) -> Subscription:
        subscription = Subscription(self, topic, callback)
        self._subscriptions.setdefault(topic, []).append(subscription)
        return subscription

    def _remove_subscription(self, subscription: Subscription):
        subscribers = self._subscriptions.get(subscription.topic, [])
        if subscription in subscribers:
            subscribers.remove(subscription)

    def advertise_service(self, name: str, handler: ServiceHandler):
        if name in self._services:
            logger.warning(f"Replacing handler for service {name}")
        self._services[name] = handler

    def call_service(self, name: str, request: Message,
                     callback: ServiceCallback,
                     error_callback: Optional[ErrorCallback] = None):
        handler = self._services.get(name)
        if handler is None:
            error = f"Service {name} is not advertised"
            logger.error(error)
            if error_callback:
                error_callback(error)
            return

        answered = []

        def respond(response: Message):
            if answered:
                logger.warning(f"Service {name} answered twice, ignoring")
                return
            answered.append(True)
            callback(response)

        handler(request, respond)
