from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    API_BASE_URL: str = "http://localhost:8000"
    REPLICATE_API_URL: str = "https://api.replicate.com/v1"
    REPLICATE_API_TOKEN: str | None = None
    UPSCALE_MODEL: str = "nightmareai/real-esrgan:f121d640bd286e1fdc67f9799164c1d5be36ff74576ee11c803ae5b665dd46aa"
    POLL_INTERVAL: float = 1.0
    HTTP_TIMEOUT: float = 30.0
    DEFAULT_SCALE: int = 4
    MAX_UPLOAD_MB: int = 20
    ALLOWED_EXT: tuple = ("png", "jpg", "jpeg", "webp", "bmp")
    CORS_ORIGINS: list[str] = ["http://localhost:5173"]
    UPSCALER_USER: str | None = None
    CLOUDINARY_CLOUD_NAME: str | None = None
    CLOUDINARY_API_KEY: str | None = None
    CLOUDINARY_API_SECRET: str | None = None
    DEFAULT_CLOUD_FOLDER: str | None = None

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


settings = Settings()
