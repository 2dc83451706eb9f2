from relay.views.auth_handlers import (
    logout as logout,
)
from relay.views.auth_handlers import (
    signin_page as signin_page,
)
from relay.views.auth_handlers import (
    submit as submit,
)
from relay.views.pages import chat_page as chat_page
from relay.views.pages import health as health
from relay.views.pages import home_page as home_page
