"""Game constants for Hook Whist."""

# Game limits
MIN_PLAYERS = 4
MAX_PLAYERS = 10

# Deck
DECK_SIZE = 52

# From this round on no trump card is drawn
NO_TRUMP_FROM_ROUND = 13

# Wire value of the no-trump sentinel
NO_TRUMP = "NO_TRUMP"
