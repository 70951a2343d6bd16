"""Unit tests - engine, repositories, services and utilities against in-memory fakes"""
