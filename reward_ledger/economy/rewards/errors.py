class RewardSettingError(Exception):
    pass


class RewardSettingValueError(RewardSettingError):
    pass
