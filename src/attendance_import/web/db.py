from ..store import SessionStore


def get_store() -> SessionStore:
    return SessionStore()


def _connect():
    return get_store()._connect()
