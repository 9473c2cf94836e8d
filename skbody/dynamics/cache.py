class LazyCache(object):
    """Cached value that is recomputed on the first read after invalidation.

    Parameters
    ----------
    compute : callable
        function without arguments returning the fresh value
    name : str or None
        name used in repr

    Examples
    --------
    >>> from skbody.dynamics.cache import LazyCache
    >>> calls = []
    >>> cache = LazyCache(lambda: calls.append(1) or len(calls))
    >>> cache.get(), cache.get()
    (1, 1)
    >>> cache.invalidate()
    >>> cache.get()
    2
    """

    def __init__(self, compute, name=None):
        self._compute = compute
        self._value = None
        self._dirty = True
        self.name = name

    @property
    def is_dirty(self):
        return self._dirty

    def invalidate(self):
        self._dirty = True

    def recompute(self):
        """Recompute the value regardless of the dirty state."""
        self._value = self._compute()
        self._dirty = False
        return self._value

    def get(self):
        if self._dirty:
            return self.recompute()
        return self._value

    def __repr__(self):
        return '#<{} {} {}>'.format(
            self.__class__.__name__, self.name or hex(id(self)),
            'dirty' if self._dirty else 'clean')
