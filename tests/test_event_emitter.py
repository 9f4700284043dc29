from toolkit_core.irc.events import EventEmitter, TransportEvent


class TestEventEmitter:
    def setup_method(self):
        self.emitter = EventEmitter()
        self.calls = []

    def test_emit_calls_handlers_in_order(self):
        self.emitter.subscribe(TransportEvent.CONNECTED, lambda p: self.calls.append(("a", p)))
        self.emitter.subscribe(TransportEvent.CONNECTED, lambda p: self.calls.append(("b", p)))
        assert self.emitter.emit(TransportEvent.CONNECTED, "bot") == 2
        assert self.calls == [("a", "bot"), ("b", "bot")]

    def test_failing_handler_is_isolated(self, caplog):
        def boom(_):
            raise RuntimeError("handler boom")

        self.emitter.subscribe(TransportEvent.MESSAGE_RECEIVED, boom)
        self.emitter.subscribe(TransportEvent.MESSAGE_RECEIVED, self.calls.append)
        assert self.emitter.emit(TransportEvent.MESSAGE_RECEIVED, "x") == 1
        assert self.calls == ["x"]
        assert "event=message_received" in caplog.text

    def test_handler_may_unsubscribe_itself(self):
        def once(payload):
            self.calls.append(payload)
            self.emitter.unsubscribe(TransportEvent.USER_LEFT, once)

        self.emitter.subscribe(TransportEvent.USER_LEFT, once)
        self.emitter.emit(TransportEvent.USER_LEFT, 1)
        self.emitter.emit(TransportEvent.USER_LEFT, 2)
        assert self.calls == [1]

    def test_unsubscribe_and_counts(self):
        handler = self.calls.append
        self.emitter.subscribe(TransportEvent.CONNECTED, handler)
        self.emitter.subscribe(TransportEvent.DISCONNECTED, handler)
        assert self.emitter.handler_count() == 2
        assert self.emitter.handler_count(TransportEvent.CONNECTED) == 1
        assert self.emitter.unsubscribe(TransportEvent.CONNECTED, handler) is True
        assert self.emitter.unsubscribe(TransportEvent.CONNECTED, handler) is False
        self.emitter.clear()
        assert self.emitter.handler_count() == 0

    def test_emit_without_handlers(self):
        assert self.emitter.emit(TransportEvent.RAID_NOTIFICATION) == 0
