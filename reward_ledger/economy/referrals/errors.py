class ReferralError(Exception):
    pass


class ReferralUserNotFoundError(ReferralError):
    def __init__(self, user_id: int) -> None:
        super().__init__(f"user {user_id} not found")
        self.user_id = user_id


class ReferralCodeExhaustedError(ReferralError):
    def __init__(self, *, user_id: int, attempts: int) -> None:
        super().__init__(f"unable to assign referral code to user {user_id} after {attempts} attempts")
        self.user_id = user_id
        self.attempts = attempts
