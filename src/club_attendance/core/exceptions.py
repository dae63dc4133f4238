class DomainError(Exception):
    """Base exception for business rule violations.

    The first argument is the user-facing (localized) message.
    """

    default_message = "エラーが発生しました。"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    default_message = "入力内容が正しくありません。"


class AuthenticationError(DomainError):
    """Raised when no verified external identity is present."""

    default_message = "ログインが必要です。"


class Unauthenticated(AuthenticationError):
    default_message = "認証されていません。ログインしてから再度お試しください。"


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""

    default_message = "権限がありません。"


class AccessDenied(AuthorizationError):
    default_message = "この班を閲覧する権限がありません。"


class NotFound(DomainError):
    default_message = "対象が見つかりません。"


class UnknownCard(NotFound):
    default_message = "未登録のカードです。"


class AlreadyRegistered(DomainError):
    default_message = "このカードは既に登録されています。"


class InvalidSession(NotFound):
    default_message = "無効な登録セッションです。"


class AlreadyUsed(DomainError):
    default_message = "この登録セッションは既に使用されています。"


class Expired(DomainError):
    default_message = "登録セッションの有効期限が切れています。"


class DuplicateIdentity(DomainError):
    """A member with the same external identity or display name exists."""

    EXTERNAL_IDENTITY = "external_identity"
    DISPLAY_NAME = "display_name"

    _messages = {
        EXTERNAL_IDENTITY: "このアカウントは既に登録されています。",
        DISPLAY_NAME: "この表示名は既に使用されています。",
    }

    def __init__(self, field: str):
        self.field = field
        super().__init__(self._messages.get(field, "既に登録されています。"))


class TeamInUse(DomainError):
    def __init__(self, member_count: int):
        self.member_count = int(member_count)
        super().__init__(f"この班には{self.member_count}人のユーザーが所属しているため、削除できません。")


class StoreUnavailable(DomainError):
    """Any failure of the underlying data store."""

    default_message = "システムエラーが発生しました。時間をおいて再度お試しください。"
