from refresh_engine.models.refresh_token import RefreshToken

__all__ = ["RefreshToken"]
