# signals currently delivering, innermost last
_delivery_stack = []


class Connection(object):
    """Handle of one slot connected to a Signal.

    Parameters
    ----------
    signal : skbody.dynamics.signal.Signal
        signal the slot is connected to
    slot : callable
        connected callback
    """

    def __init__(self, signal, slot):
        self._signal = signal
        self._slot = slot
        self._connected = True

    @property
    def slot(self):
        return self._slot

    def is_connected(self):
        return self._connected

    def disconnect(self):
        """Disconnect the slot. Calling this twice is a no-op."""
        if not self._connected:
            return
        self._signal._disconnect(self)

    def __repr__(self):
        return '#<{} {} {}>'.format(
            self.__class__.__name__, hex(id(self)),
            'connected' if self._connected else 'disconnected')


class ScopedConnection(Connection):
    """Connection that disconnects when leaving a with block.

    Examples
    --------
    >>> from skbody.dynamics.signal import Signal
    >>> signal = Signal()
    >>> with signal.connect_scoped(print):
    ...     signal.emit('hello')
    hello
    >>> signal.num_connections()
    0
    """

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.disconnect()


class Signal(object):
    """Synchronous multi-slot notification channel.

    Slots are called in registration order. A round of delivery iterates
    over the slots connected when the round began; a slot that is
    disconnected during the round is skipped if it has not fired yet, and a
    slot connected during the round first fires on the next round.
    While a signal is delivering, only its own subscriber list may be
    modified.
    """

    def __init__(self, name=None):
        self.name = name
        self._connections = []

    def connect(self, slot, connection_class=Connection):
        if not callable(slot):
            raise TypeError('slot should be callable, get {}'
                            .format(type(slot)))
        self._check_mutable()
        connection = connection_class(self, slot)
        self._connections.append(connection)
        return connection

    def connect_scoped(self, slot):
        return self.connect(slot, connection_class=ScopedConnection)

    def _disconnect(self, connection):
        self._check_mutable()
        connection._connected = False
        self._connections.remove(connection)

    def disconnect_all(self):
        self._check_mutable()
        for connection in self._connections:
            connection._connected = False
        self._connections = []

    def num_connections(self):
        return len(self._connections)

    def _check_mutable(self):
        if _delivery_stack and _delivery_stack[-1] is not self:
            raise RuntimeError(
                'Cannot change the slots of {} while {} is delivering'
                .format(self, _delivery_stack[-1]))

    def emit(self, *args):
        """Call every connected slot with args."""
        if not self._connections:
            return
        _delivery_stack.append(self)
        try:
            for connection in list(self._connections):
                if connection._connected:
                    connection._slot(*args)
        finally:
            _delivery_stack.pop()

    def __call__(self, *args):
        self.emit(*args)

    def __repr__(self):
        if self.name:
            return '#<{} {} {}>'.format(
                self.__class__.__name__, hex(id(self)), self.name)
        return '#<{} {}>'.format(self.__class__.__name__, hex(id(self)))


class SlotRegister(object):
    """Public face of a Signal that only allows connecting slots."""

    def __init__(self, signal):
        self._signal = signal

    def connect(self, slot):
        return self._signal.connect(slot)

    def connect_scoped(self, slot):
        return self._signal.connect_scoped(slot)

    def num_connections(self):
        return self._signal.num_connections()
