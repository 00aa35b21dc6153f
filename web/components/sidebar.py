import httpx
import streamlit as st
from permem.dashboard import DashboardClient
from permem.exceptions import PermemError
from permem.models import Account


ACCOUNT_STATE_KEYS = ("api_key_override", "confirm_regenerate", "page")


def render_sidebar(client: DashboardClient) -> tuple[str, Account | None]:
    """Render sidebar with authentication and navigation.

    Args:
        client: The DashboardClient instance

    Returns:
        Tuple of (selected_page, signed-in account or None)
    """
    with st.sidebar:
        st.title("Permem")

        st.divider()

        if not client.is_authenticated:
            render_auth_forms(client)
            return "Overview", None

        try:
            account = client.me()
        except PermemError as e:
            # Expired or revoked session
            end_session(client)
            st.error(f"Session ended: {e}")
            st.rerun()
        except httpx.HTTPError as e:
            st.error(f"Cannot reach the Permem server: {e}")
            st.stop()

        st.caption(f"Signed in as {account.user.name}")
        st.caption(account.user.email)

        st.divider()

        page = st.radio(
            "Navigation",
            options=["Overview", "Memories", "Graph"],
            label_visibility="collapsed",
        )

        st.divider()

        if st.button("Log out", use_container_width=True):
            end_session(client)
            st.rerun()

    return page, account


def end_session(client: DashboardClient) -> None:
    """Log out and drop page state that belongs to the signed-in account."""
    client.logout()
    for key in ACCOUNT_STATE_KEYS:
        st.session_state.pop(key, None)


def render_auth_forms(client: DashboardClient) -> None:
    """Render login and signup forms."""
    tab_login, tab_signup = st.tabs(["Log in", "Sign up"])

    with tab_login:
        with st.form("login_form"):
            email = st.text_input("Email", key="login_email")
            password = st.text_input("Password", type="password", key="login_password")
            submitted = st.form_submit_button("Log in", type="primary", use_container_width=True)

        if submitted:
            try:
                client.login(email, password)
                st.rerun()
            except (PermemError, httpx.HTTPError) as e:
                st.error(f"Login failed: {e}")

    with tab_signup:
        with st.form("signup_form"):
            name = st.text_input("Name", key="signup_name")
            email = st.text_input("Email", key="signup_email")
            password = st.text_input("Password", type="password", key="signup_password")
            submitted = st.form_submit_button("Create account", type="primary", use_container_width=True)

        if submitted:
            if not name.strip() or not email.strip() or not password:
                st.warning("Please fill in all fields.")
                return
            try:
                client.signup(name.strip(), email.strip(), password)
                st.rerun()
            except (PermemError, httpx.HTTPError) as e:
                st.error(f"Signup failed: {e}")
