"""VeriBoard job-verification platform backend"""
