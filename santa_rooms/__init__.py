"""
santa-rooms application package.

Keeps a local memory of the gift-exchange rooms this machine has created or
joined, authenticated only by the opaque codes the Groups API hands out.

  santa_rooms/repositories/  — pure I/O: loading from and persisting to JSON files.
  santa_rooms/services/      — cache rules: normalisation, profile touches, queries.

``RoomStore`` (in ``store.py``) is the integration point: it creates the
repository and service instances once and exposes only the typed operations,
so every credential or membership write also refreshes the room profile.
``RoomManager`` (in ``rooms.py``) drives the Groups API and the realtime
gateway and pushes the results into the store.
"""

__version__ = '0.1.0'
