class LyricsifyError(RuntimeError):
    pass


class AuthenticationFailed(LyricsifyError):
    pass


class RemoteApiError(LyricsifyError):
    pass


class LyricsFetchError(LyricsifyError):
    pass


class LyricsNotFound(LyricsFetchError):
    pass


class ConfigError(LyricsifyError):
    pass


class NetworkError(LyricsifyError):
    pass


class SecureStorageError(LyricsifyError):
    pass


class SerializationError(LyricsifyError):
    pass


class IoError(LyricsifyError):
    pass
