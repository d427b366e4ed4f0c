"""Custom exception classes for the LenteXhibit application."""


class LenteXhibitError(Exception):
    """Base exception for all LenteXhibit-specific errors."""

    def __init__(self, message: str, details: str | None = None):
        self.message = message
        self.details = details
        super().__init__(self.message)


# Categories (one per HTTP status)

class InvalidInputError(LenteXhibitError):
    """Missing or invalid request fields."""


class NotAuthenticatedError(LenteXhibitError):
    """Raised when a request carries no valid session."""

    def __init__(self, message: str = "Not authenticated"):
        super().__init__(
            message=message,
            details="Log in to continue"
        )


class ForbiddenError(LenteXhibitError):
    """The caller's role or ownership does not permit the action."""


class NotFoundError(LenteXhibitError):
    """A referenced record does not exist."""


class ConflictError(LenteXhibitError):
    """The request collides with existing state."""


# Authentication and accounts

class AdminRequiredError(ForbiddenError):
    """Raised when a non-admin calls an admin-only endpoint."""

    def __init__(self):
        super().__init__(message="Admin access required")


class MemberRequiredError(ForbiddenError):
    """Raised when a non-member attempts a member-only action."""

    def __init__(self, action: str):
        super().__init__(message=f"Only members can {action}")
        self.action = action


class MemberNotApprovedError(ForbiddenError):
    """Raised when an unapproved member tries to log in."""

    def __init__(self, email: str):
        super().__init__(
            message="Member account not approved yet",
            details="An administrator must approve this account before it can log in"
        )
        self.email = email


class AccountArchivedError(ForbiddenError):
    """Raised when an archived account tries to log in."""

    def __init__(self, email: str):
        super().__init__(
            message="This account has been archived",
            details="Contact an administrator to reactivate it"
        )
        self.email = email


class EmailAlreadyRegisteredError(ConflictError):
    """Raised on signup with an email that is already taken."""

    def __init__(self, email: str):
        super().__init__(
            message="User with this email already exists. Would you like to log in instead?",
        )
        self.email = email


class UserNotFoundError(NotFoundError):
    """Raised when a user is not found."""

    def __init__(self, user_id: str | None = None):
        message = "User not found"
        if user_id:
            message += f": {user_id}"
        super().__init__(
            message=message,
            details="The requested user does not exist"
        )
        self.user_id = user_id


# Works, portfolios, themes

class NotOwnerError(ForbiddenError):
    """Raised when the caller does not own the resource it is changing."""

    def __init__(self, resource: str, action: str = "modify"):
        super().__init__(message=f"Not authorized to {action} this {resource}")
        self.resource = resource


class WorkNotFoundError(NotFoundError):
    """Raised when a work is not found."""

    def __init__(self, work_id: str):
        super().__init__(
            message=f"Work not found: {work_id}",
            details="The requested work does not exist"
        )
        self.work_id = work_id


class PortfolioNotFoundError(NotFoundError):
    """Raised when a portfolio is not found."""

    def __init__(self, key: str):
        super().__init__(
            message=f"Portfolio not found: {key}",
            details="The requested portfolio does not exist"
        )
        self.key = key


class PortfolioExistsError(ConflictError):
    """Raised when a member already owns a portfolio."""

    def __init__(self, user_id: str):
        super().__init__(message="Portfolio already exists for this user")
        self.user_id = user_id


class ThemeNotFoundError(NotFoundError):
    """Raised when a theme is not found."""

    def __init__(self, theme_id: str):
        super().__init__(
            message=f"Theme not found: {theme_id}",
            details="The requested theme does not exist"
        )
        self.theme_id = theme_id


class ThemeNotActiveError(InvalidInputError):
    """Raised when submitting or voting on a theme outside its window."""

    def __init__(self, theme_id: str, status: str):
        super().__init__(
            message="This theme is not currently accepting submissions or votes",
            details=f"Theme status is {status}"
        )
        self.theme_id = theme_id
        self.status = status


class CategoryMismatchError(InvalidInputError):
    """Raised when a work's category does not fit the theme."""

    def __init__(self, theme_category: str, work_category: str):
        super().__init__(
            message=f"This theme only accepts {theme_category}",
            details=f"Work category is {work_category}"
        )
        self.theme_category = theme_category
        self.work_category = work_category


class AlreadySubmittedError(ConflictError):
    """Raised when a work is already in a theme's submission list."""

    def __init__(self, work_id: str, theme_id: str):
        super().__init__(message="Work already submitted to this theme")
        self.work_id = work_id
        self.theme_id = theme_id


class WorkNotInThemeError(InvalidInputError):
    """Raised when a theme-scoped vote targets a work not submitted to the theme."""

    def __init__(self, work_id: str, theme_id: str):
        super().__init__(message="Work is not a submission of this theme")
        self.work_id = work_id
        self.theme_id = theme_id


# Votes and flags

class DuplicateVoteError(ConflictError):
    """Raised when a user votes twice for the same (work, theme) key."""

    def __init__(self, work_id: str, theme_id: str | None = None):
        super().__init__(message="You have already voted for this work")
        self.work_id = work_id
        self.theme_id = theme_id


class VoteNotFoundError(NotFoundError):
    """Raised when removing a vote that was never cast."""

    def __init__(self, work_id: str):
        super().__init__(message="Vote not found")
        self.work_id = work_id


class DuplicateFlagError(ConflictError):
    """Raised when a user flags a work they already have a pending flag on."""

    def __init__(self, work_id: str):
        super().__init__(message="You have already flagged this work")
        self.work_id = work_id


class FlagNotFoundError(NotFoundError):
    """Raised when the caller has no pending flag to remove."""

    def __init__(self, work_id: str):
        super().__init__(message="No pending flag found from you")
        self.work_id = work_id


class UploadRejectedError(InvalidInputError):
    """Raised when an uploaded file fails validation."""
