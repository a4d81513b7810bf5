"""Keep a Slack status in sync with the track playing in Music or Spotify."""
