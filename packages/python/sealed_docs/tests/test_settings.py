import pytest

from sealed_docs.errors import EncryptionError
from sealed_docs.settings import MapperSettings, get_settings
import sealed_docs.mapper as mapper_module
from sealed_docs.mapper import DocumentMapper, connect


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    for name in (
        "SEALED_DOCS_CONNECTION_STRING",
        "SEALED_DOCS_DATABASE",
        "SEALED_DOCS_ENCRYPTION_KEY",
        "SEALED_DOCS_ENCRYPTION_KEY_PER_COLLECTION",
    ):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_defaults():
    settings = MapperSettings()
    assert settings.connection_string == "mongodb://localhost:27017"
    assert settings.database == "sealed_docs"
    assert settings.encryption_key == ""
    assert settings.encryption_key_per_collection == {}


def test_reads_environment(monkeypatch):
    monkeypatch.setenv("SEALED_DOCS_CONNECTION_STRING", "mongodb://mongo:27017")
    monkeypatch.setenv("SEALED_DOCS_DATABASE", "clinic")
    monkeypatch.setenv("SEALED_DOCS_ENCRYPTION_KEY", "k" * 32)
    monkeypatch.setenv("SEALED_DOCS_ENCRYPTION_KEY_PER_COLLECTION", '{"patient": "' + "p" * 32 + '"}')

    settings = MapperSettings()
    assert settings.connection_string == "mongodb://mongo:27017"
    assert settings.database == "clinic"
    assert settings.encryption_key == "k" * 32
    assert settings.encryption_key_per_collection == {"patient": "p" * 32}


def test_reads_dotenv_file(tmp_path):
    (tmp_path / ".env").write_text("SEALED_DOCS_DATABASE=from_dotenv\n")
    assert MapperSettings().database == "from_dotenv"


def test_key_mapping_accepts_json_string():
    settings = MapperSettings(encryption_key_per_collection='{"audit_log": "secret"}')
    assert settings.encryption_key_per_collection == {"audit_log": "secret"}


def test_repr_hides_keys():
    settings = MapperSettings(encryption_key="top-secret-key", encryption_key_per_collection={"a": "other-secret"})
    assert "secret" not in repr(settings)


def test_get_settings_is_cached():
    assert get_settings() is get_settings()


def test_connect_builds_mapper_from_settings(monkeypatch):
    captured = {}

    class FakeGateway:
        @classmethod
        def connect(cls, connection_string, database, **options):
            captured.update(uri=connection_string, database=database, options=options)
            return cls()

    monkeypatch.setattr(mapper_module, "MongoGateway", FakeGateway)
    settings = MapperSettings(
        connection_string="mongodb://mongo:27017",
        database="clinic",
        encryption_key="k" * 32,
        encryption_key_per_collection={"patient": "p" * 32},
    )

    mapper = connect(settings, connectTimeoutMS=100)

    assert isinstance(mapper, DocumentMapper)
    assert isinstance(mapper.gateway, FakeGateway)
    assert captured == {"uri": "mongodb://mongo:27017", "database": "clinic", "options": {"connectTimeoutMS": 100}}
    assert mapper.key_for("patient") == b"p" * 32
    assert mapper.key_for("audit_log") == b"k" * 32


@pytest.mark.parametrize(
    "overrides",
    [
        dict(encryption_key=""),
        dict(encryption_key="too-short"),
        dict(encryption_key="k" * 32, encryption_key_per_collection={"patient": "p" * 20}),
    ],
)
def test_connect_rejects_bad_keys_before_dialling(monkeypatch, overrides):
    dialled = []

    class FakeGateway:
        @classmethod
        def connect(cls, connection_string, database, **options):
            dialled.append(connection_string)
            return cls()

    monkeypatch.setattr(mapper_module, "MongoGateway", FakeGateway)

    with pytest.raises(EncryptionError):
        connect(MapperSettings(**overrides))
    assert dialled == []
