"""Task sources and progress orchestration"""
