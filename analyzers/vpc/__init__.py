"""
analyzers/vpc - VPC 네트워크 분석

NAT Gateway 트래픽 분류 및 VPC Endpoint 구성 진단
"""
