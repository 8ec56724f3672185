"""Interview Proctor Service"""
