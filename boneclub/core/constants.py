"""Global constants for the boneclub application."""

# Firestore limits
FIRESTORE_BATCH_LIMIT = 400
FIRESTORE_IN_LIMIT = 30

# Collection names
USERS = "users"
LEAGUES = "leagues"
DIVISIONS = "divisions"
LEAGUE_PARTICIPANTS = "league_participants"
LEAGUE_MATCHES = "league_matches"
LEAGUE_MATCH_PROPOSALS = "league_match_proposals"
MESSAGES = "messages"
TOURNAMENT_PARTICIPANTS = "tournament_participants"
CLUB_MEMBERS = "club_members"

# League statuses
LEAGUE_DRAFT = "draft"
LEAGUE_REGISTRATION_OPEN = "registration_open"
LEAGUE_IN_PROGRESS = "in_progress"
LEAGUE_COMPLETED = "completed"

# League formats
FORMAT_ROUND_ROBIN = "round_robin"
FORMAT_DOUBLE_ROUND_ROBIN = "double_round_robin"
FORMAT_SWISS = "swiss"
LEAGUE_FORMATS = (FORMAT_ROUND_ROBIN, FORMAT_DOUBLE_ROUND_ROBIN, FORMAT_SWISS)

# Participant statuses
PARTICIPANT_INVITED = "invited"
PARTICIPANT_REGISTERED = "registered"
PARTICIPANT_ACTIVE = "active"
ELIGIBLE_PARTICIPANT_STATUSES = (PARTICIPANT_ACTIVE, PARTICIPANT_REGISTERED)

# Match statuses
MATCH_UNARRANGED = "unarranged"
MATCH_ARRANGEMENT_PROPOSED = "arrangement_proposed"
MATCH_SCHEDULED = "scheduled"
MATCH_PENDING_RESULT_REPORT = "pending_result_report"
MATCH_COMPLETED = "completed"
REPORTABLE_MATCH_STATUSES = (MATCH_SCHEDULED, MATCH_PENDING_RESULT_REPORT)

# Proposal statuses
PROPOSAL_PENDING = "pending"
PROPOSAL_ACCEPTED = "accepted"
PROPOSAL_DECLINED = "declined"

# Proposal limits
PROPOSAL_MIN_SLOTS = 1
PROPOSAL_MAX_SLOTS = 5

# League defaults
DEFAULT_PLAYERS_PER_DIVISION = 2
DEFAULT_RATING = 1500

# Standings points
POINTS_PER_WIN = 3
POINTS_PER_DRAW = 1
POINTS_PER_LOSS = 0

# Messages
MESSAGE_TYPE_NOTIFICATION = "notification"
MESSAGE_UNREAD = "unread"
MESSAGE_READ = "read"
SYSTEM_SENDER_ID = "system"
SYSTEM_SENDER_USERNAME = "Bone Club Bot"

# Store retry policy (seconds)
STORE_RETRY_INITIAL_DELAY = 0.5
STORE_RETRY_MULTIPLIER = 2.0
STORE_RETRY_MAX_DELAY = 30.0
STORE_RETRY_TIMEOUT = 120.0

# Email-related constants
SMTP_AUTH_ERROR_CODE = 534
