"""Dependency injection singletons for SpotiQueue."""

from spotiqueue.common.config import get_settings
from spotiqueue.common.database import DatabaseManager
from spotiqueue.configstore.service import ConfigService
from spotiqueue.fingerprints.service import FingerprintRegistry
from spotiqueue.admission.denylist import DenylistService
from spotiqueue.admission.service import AdmissionController
from spotiqueue.prequeue.service import PrequeueWorkflow
from spotiqueue.notifications.actions import ActionSigner
from spotiqueue.notifications.slack import SlackNotifier
from spotiqueue.votes.service import VoteTally
from spotiqueue.activity.service import ActivityService
from spotiqueue.admin.service import AdminService
from spotiqueue.playback.connect import SpotifyConnect
from spotiqueue.playback.gateway import PlaybackGateway
from spotiqueue.playback.lyrics import LyricsClient
from spotiqueue.playback.spotify import SpotifyGateway

_db: DatabaseManager | None = None
_config: ConfigService | None = None
_gateway: PlaybackGateway | None = None
_lyrics: LyricsClient | None = None
_spotify_connect: SpotifyConnect | None = None
_notifier: SlackNotifier | None = None
_registry: FingerprintRegistry | None = None
_denylist: DenylistService | None = None
_admission: AdmissionController | None = None
_prequeue: PrequeueWorkflow | None = None
_votes: VoteTally | None = None
_activity: ActivityService | None = None
_admin: AdminService | None = None


def get_db() -> DatabaseManager:
    global _db
    if _db is None:
        _db = DatabaseManager(get_settings())
    return _db


def get_config_service() -> ConfigService:
    global _config
    if _config is None:
        _config = ConfigService(get_settings())
    return _config


def get_gateway() -> PlaybackGateway:
    global _gateway
    if _gateway is None:
        _gateway = SpotifyGateway(get_settings())
    return _gateway


def set_gateway(gateway: PlaybackGateway) -> None:
    """Swap the playback provider (tests inject an in-process fake)."""
    global _gateway, _admission, _prequeue
    _gateway = gateway
    _admission = None
    _prequeue = None


def get_lyrics() -> LyricsClient:
    global _lyrics
    if _lyrics is None:
        _lyrics = LyricsClient(get_settings())
    return _lyrics


def set_lyrics_client(client: LyricsClient) -> None:
    global _lyrics
    _lyrics = client


def get_spotify_connect() -> SpotifyConnect:
    global _spotify_connect
    if _spotify_connect is None:
        _spotify_connect = SpotifyConnect(get_settings(), get_config_service())
    return _spotify_connect


def set_spotify_connect(connect: SpotifyConnect) -> None:
    global _spotify_connect
    _spotify_connect = connect


def get_notifier() -> SlackNotifier:
    global _notifier
    if _notifier is None:
        settings = get_settings()
        _notifier = SlackNotifier(settings, ActionSigner(settings.secret_key))
    return _notifier


def get_registry() -> FingerprintRegistry:
    global _registry
    if _registry is None:
        _registry = FingerprintRegistry(get_settings())
    return _registry


def get_denylist() -> DenylistService:
    global _denylist
    if _denylist is None:
        _denylist = DenylistService()
    return _denylist


def get_admission() -> AdmissionController:
    global _admission
    if _admission is None:
        _admission = AdmissionController(
            get_settings(), get_registry(), get_gateway(), get_denylist(),
        )
    return _admission


def get_prequeue() -> PrequeueWorkflow:
    global _prequeue
    if _prequeue is None:
        _prequeue = PrequeueWorkflow(get_admission(), notifier=get_notifier())
    return _prequeue


def get_votes() -> VoteTally:
    global _votes
    if _votes is None:
        _votes = VoteTally(get_registry())
    return _votes


def get_activity() -> ActivityService:
    global _activity
    if _activity is None:
        _activity = ActivityService()
    return _activity


def get_admin_service() -> AdminService:
    global _admin
    if _admin is None:
        _admin = AdminService()
    return _admin


async def close_clients() -> None:
    """Release outbound HTTP clients held by the provider adapters."""
    if isinstance(_gateway, SpotifyGateway):
        await _gateway.aclose()
    if _notifier is not None:
        await _notifier.aclose()
    if _lyrics is not None:
        await _lyrics.aclose()
    if _spotify_connect is not None:
        await _spotify_connect.aclose()


def reset_singletons() -> None:
    """Reset all singletons (for testing)."""
    global _db, _config, _gateway, _lyrics, _spotify_connect, _notifier, _registry, _denylist
    global _admission, _prequeue, _votes, _activity, _admin
    _db = None
    _config = None
    _gateway = None
    _lyrics = None
    _spotify_connect = None
    _notifier = None
    _registry = None
    _denylist = None
    _admission = None
    _prequeue = None
    _votes = None
    _activity = None
    _admin = None
