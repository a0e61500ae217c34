from unittest.mock import MagicMock

from fastapi.testclient import TestClient

import main
from services.posts import PostsService


def test_lifespan_wires_service_and_releases_firebase(monkeypatch):
    firebase_app = MagicMock()
    firestore_db = MagicMock()
    delete_app = MagicMock()
    monkeypatch.setattr(main.credentials, "Certificate", MagicMock())
    monkeypatch.setattr(main.firebase_admin, "initialize_app", MagicMock(return_value=firebase_app))
    monkeypatch.setattr(main.firebase_admin, "delete_app", delete_app)
    monkeypatch.setattr(main, "FirestoreDB", MagicMock(return_value=firestore_db))

    with TestClient(main.app):
        service = main.app.state.posts_service
        assert isinstance(service, PostsService)
        assert service.db is firestore_db
        assert not hasattr(main.app.state, "firestore")
        delete_app.assert_not_called()

    delete_app.assert_called_once_with(firebase_app)
    del main.app.state.posts_service
