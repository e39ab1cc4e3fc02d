from lyricsify.cli import main

main()
