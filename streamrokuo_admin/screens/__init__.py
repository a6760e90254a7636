from .base import DetailScreen, ListScreen, RowIndex
from .dashboard import DashboardScreen
from .live_accounts import LiveAccountDetailScreen, LiveAccountsScreen
from .recordings import RecordingsScreen
from .support_tickets import SupportTicketsScreen
from .users import UserDetailScreen, UsersScreen
from .watch import WatchAction

# screens that can be kept alive over a websocket
LIST_SCREENS = {
    UsersScreen.name: UsersScreen,
    LiveAccountsScreen.name: LiveAccountsScreen,
    RecordingsScreen.name: RecordingsScreen,
    SupportTicketsScreen.name: SupportTicketsScreen,
}
