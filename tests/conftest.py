import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec

from songcart.core.config import Settings
from songcart.database.carts import CartManager
from songcart.database.storage import InMemoryStorage
from songcart.models.cart import CartSong


class FakeClock:
    """Manually advanced monotonic clock"""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_song(song_id: str = "s1", **overrides) -> CartSong:
    fields = {
        "id": song_id,
        "name": f"Song {song_id}",
        "artist": "Artist",
        "album": "Album",
        "artwork": "https://example.com/art.jpg",
        "genre": "Pop",
        "year": "1999",
    }
    fields.update(overrides)
    return CartSong(**fields)


def apple_song(song_id: str, name: str = "Song", **attributes) -> dict:
    """Minimal Apple Music song resource"""
    attrs = {
        "name": name,
        "artistName": "Artist",
        "albumName": "Album",
        "releaseDate": "2001-07-16",
        "genreNames": ["Pop", "Music"],
        "previews": [{"url": f"https://audio.example.com/{song_id}.m4a"}],
        "artwork": {"url": "https://img.example.com/{w}x{h}bb.jpg", "width": 3000, "height": 3000},
        "durationInMillis": 210000,
    }
    attrs.update(attributes)
    return {"id": song_id, "type": "songs", "attributes": attrs}


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def manager(storage):
    return CartManager(storage, "client-1")


@pytest.fixture(scope="session")
def ec_private_key():
    return ec.generate_private_key(ec.SECP256R1())


@pytest.fixture(scope="session")
def ec_private_pem(ec_private_key):
    return ec_private_key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.PKCS8,
        serialization.NoEncryption(),
    ).decode()


@pytest.fixture
def settings(ec_private_pem):
    return Settings(
        _env_file=None,
        storage_backend="memory",
        cart_rate_limit=5,
        cart_rate_window_seconds=60,
        retry_max_attempts=3,
        retry_initial_delay=0,
        apple_team_id="TEAM123",
        apple_key_id="KEY123",
        apple_private_key=ec_private_pem,
        apple_music_base_url="https://music.test/v1",
    )
