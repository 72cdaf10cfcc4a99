USERS_COLLECTION_NAME = 'users'
SESSIONS_COLLECTION_NAME = 'sessions'
PSN_GAMES_COLLECTION_NAME = 'psn_games'
PSN_TROPHY_PROFILES_COLLECTION_NAME = 'psn_trophy_profiles'
STEAM_GAMES_COLLECTION_NAME = 'steam_games'
XBOX_GAMES_COLLECTION_NAME = 'xbox_games'
