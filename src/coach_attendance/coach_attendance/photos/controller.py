from __future__ import annotations

from flask import Flask, send_from_directory

from ..container import Container
from .storage import LocalPhotoStorage


def register(app: Flask, container: Container) -> None:
    storage = container.photo_storage
    if not isinstance(storage, LocalPhotoStorage):
        # remote storages hand out their own public URLs
        return

    @app.route(f"{storage.base_url}/<path:key>", methods=["GET"], endpoint="local_photo")
    def local_photo(key: str):
        return send_from_directory(storage.directory.resolve(), key)
