import itertools
import logging
import uuid

from . import utils

log = logging.getLogger("store")
_marker = object()


class Indexer(object):
    def __call__(self, state):
        # return a new mapping of indexKey: object or [objects]
        return {}

    def remove(self, item):
        pass


def _getter(o, k, default=_marker):
    try:
        return getattr(o, k)
    except AttributeError:
        try:
            return o[k]
        except (KeyError, TypeError):
            return default


class ExtendingIndexer(Indexer):
    """Add to the base object (the store) based on properties defined here
    """

    def __init__(self, *props, normalize=None):
        self.props = props
        self.store = utils.AttrAccess()
        self.normalizer = normalize

    def _path(self, item):
        parts = []
        for p in self.props:
            n = _getter(item, p)
            if n is _marker or n is None:
                return None
            parts.append(n)
        if self.normalizer:
            parts[:-1] = [self.normalizer(n) for n in parts[:-1]]
        return parts

    def __call__(self, item):
        parts = self._path(item)
        if parts is None:
            return
        key = parts.pop()
        o = self.store
        for n in parts:
            o = dict.setdefault(o, n, utils.AttrAccess())
        o[key] = item

    def remove(self, item):
        parts = self._path(item)
        if parts is None:
            return
        key = parts.pop()
        o = self.store
        for n in parts:
            o = dict.get(o, n)
            if o is None:
                return
        if dict.get(o, key) is item:
            dict.pop(o, key)

    def __getattr__(self, key):
        if self.normalizer:
            key = self.normalizer(key)
        return dict.__getitem__(self.store, key)

    def get(self, key, default=None):
        if self.normalizer:
            key = self.normalizer(key)
        return dict.get(self.store, key, default)


def PropertyIndexer():
    return ExtendingIndexer("kind", "id", normalize=str.lower)


class Store:
    """Record store, maintains indexes over persisted records.
    Records themselves are only mutated by their owners.

    To index a record it must have a ``kind`` and an ``id``; records
    without an id are kept in the state but skipped by the indexers.
    """

    def __init__(self, *indexers):
        self.__state = []
        self.__indexers = {}
        self.__sequences = {}
        if not indexers:
            indexers = [PropertyIndexer()]
        for indexer in indexers:
            self.addIndexer(indexer)

    @property
    def state(self):
        return tuple(self.__state)

    def __len__(self):
        return len(self.__state)

    def __iter__(self):
        return iter(list(self.__state))

    @property
    def indexers(self):
        return tuple(self.__indexers.values())

    def __getattr__(self, indexName):
        for index in self.__indexers.values():
            o = index.get(indexName, _marker)
            if o is not _marker:
                return o
        raise AttributeError(indexName)

    def addIndexer(self, indexer):
        """Indexer should produce one or more dict like index objects"""
        uid = uuid.uuid4()
        self.__indexers[uid] = indexer
        for item in self.__state:
            indexer(item)
        return uid

    def removeIndexer(self, uid):
        self.__indexers.pop(uid, None)

    def __contains__(self, item):
        return any(item is o for o in self.__state)

    def next_id(self, kind):
        kind = _kind_name(kind)
        seq = self.__sequences.setdefault(kind, itertools.count(1))
        return next(seq)

    def add(self, record):
        if record not in self:
            self.__state.append(record)
        for indexer in self.__indexers.values():
            indexer(record)
        log.debug(f"Stored {record!r}")
        return record

    def remove(self, record):
        if record not in self:
            return False
        self.__state = [o for o in self.__state if o is not record]
        for indexer in self.__indexers.values():
            indexer.remove(record)
        log.debug(f"Removed {record!r}")
        return True

    def clear(self):
        for record in list(self.__state):
            self.remove(record)
        self.__sequences.clear()

    def get(self, kind, id, default=None):
        kind = _kind_name(kind)
        return utils.pick(self.__state, kind=kind, id=id, default=default)

    def all(self, kind):
        kind = _kind_name(kind)
        return [o for o in self.__state if _getter(o, "kind", None) == kind]

    def where(self, kind, query=None, **kwargs):
        return list(utils.filter_iter(self.all(kind), query, **kwargs))


def _kind_name(kind):
    if isinstance(kind, str):
        return kind
    return getattr(kind, "kind", None) or kind.__name__
