from __future__ import annotations


class LyricsSource:
    name: str

    def query(self, artist: str, title: str) -> str:
        """
        Return lyrics text, or raise LyricsNotFound / LyricsFetchError /
        NetworkError.
        """
        raise NotImplementedError
