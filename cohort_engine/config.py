from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    # Настройки приложения
    APP_NAME: str = "Cohort Commerce & Release Engine"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    
    # Настройки хранилища документов
    DATABASE_URL: str = "sqlite:///./cohort_engine.db"
    STORE_TIMEOUT_SECONDS: int = 10
    
    # Расписание выхода уроков
    RELEASE_TIMEZONE: str = "UTC"
    DEFAULT_WEEKLY_RELEASE_TIME: str = "08:00"
    RELEASE_DAY_OFFSET_DAYS: int = 1
    
    # Прогресс и активность
    STREAK_WINDOW_DAYS: int = 7
    ONLINE_WINDOW_MINUTES: int = 5
    VIDEO_COMPLETION_THRESHOLD: int = 90  # Процент просмотра
    
    # Купоны
    COUPON_REDEEM_MAX_ATTEMPTS: int = 3
    
    # Настройки CORS
    ALLOWED_ORIGINS: list = ["http://localhost:3000", "http://localhost:5173"]
    
    class Config:
        env_file = ".env"

settings = Settings()
