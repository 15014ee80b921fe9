"""Till state: the per-till store and the registry that hands it out."""
from pos.state.store import PosState, PosStore
from pos.state.tills import TillRegistry, get_store, init_tills

__all__ = ['PosState', 'PosStore', 'TillRegistry', 'get_store', 'init_tills']
